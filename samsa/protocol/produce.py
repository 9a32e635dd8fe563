"""Produce request (version 3): send record batches to a broker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from ..compression import (
    Compression,
    compress,
    compress_lz4,
    compress_snappy,
    compress_zstd,
    now,
    to_crc,
)
from .base import HeaderRequest, Writer

logger = logging.getLogger(__name__)

API_KEY_PRODUCE = 0
API_VERSION = 3

# The magic byte (record format version) used for every batch sent.
MESSAGE_MAGIC_BYTE = 2

# Offset of the CRC inside a batch body: partition_leader_epoch (4) + magic (1).
_CRC_POS = 5

_COMPRESSORS: dict[Compression, Callable[[bytes], bytes]] = {
    Compression.GZIP: compress,
    Compression.SNAPPY: compress_snappy,
    Compression.LZ4: compress_lz4,
    Compression.ZSTD: compress_zstd,
}

BytesLike = Union[bytes, bytearray, memoryview]


def _as_bytes(value: Union[str, BytesLike]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


@dataclass(frozen=True)
class Attributes:
    """Record batch attributes; bits 0-2 select the compression codec."""

    compression: Optional[Compression] = None

    @classmethod
    def from_int(cls, value: int) -> Attributes:
        bits = value & 0x07
        compression = Compression(bits) if 1 <= bits <= 4 else None
        return cls(compression)

    def to_int(self) -> int:
        return self.compression.value if self.compression is not None else 0

    def write_to(self, writer: Writer) -> None:
        writer.int16(self.to_int())


@dataclass
class Header:
    """A record header: a text key and a byte value."""

    key: str
    value: bytes

    def __post_init__(self) -> None:
        self.value = _as_bytes(self.value)

    def write_to(self, writer: Writer) -> None:
        key = self.key.encode("utf-8")
        writer.varint(len(key))
        writer.raw(key)
        writer.varint(len(self.value))
        writer.raw(self.value)


@dataclass
class Message:
    """A message to produce: optional key and value, and headers."""

    key: Optional[bytes] = None
    value: Optional[bytes] = None
    headers: list[Header] = field(default_factory=list)


@dataclass
class Record:
    """One record within a batch, with its deltas from the batch base."""

    message: Message
    timestamp_delta: int
    offset_delta: int
    attributes: int = 0

    def encode_body(self) -> bytes:
        """Encode the record without its leading length."""
        key = _as_bytes(self.message.key) if self.message.key is not None else b""
        value = _as_bytes(self.message.value) if self.message.value is not None else b""
        writer = Writer()
        writer.int8(self.attributes)
        writer.varint(self.timestamp_delta)
        writer.varint(self.offset_delta)
        writer.varint(len(key))
        writer.raw(key)
        writer.varint(len(value))
        writer.raw(value)
        writer.varint(len(self.message.headers))
        for header in self.message.headers:
            header.write_to(writer)
        return writer.getvalue()

    def write_to(self, writer: Writer) -> None:
        body = self.encode_body()
        writer.varint(len(body))
        writer.raw(body)


class RecordBatch:
    """A batch of records sharing a base offset and timestamp."""

    def __init__(self, attributes: Optional[Attributes] = None) -> None:
        self.base_offset = 0
        self.partition_leader_epoch = -1
        self.magic = MESSAGE_MAGIC_BYTE
        self.attributes = attributes if attributes is not None else Attributes()
        self.last_offset_delta = -1
        self.base_timestamp = now()
        self.max_timestamp = 0
        self.producer_id = -1
        self.producer_epoch = -1
        self.base_sequence = -1
        self.records: list[Record] = []

    def __repr__(self) -> str:
        return (
            f"RecordBatch(attributes={self.attributes!r}, records={len(self.records)})"
        )

    def add(self, message: Message) -> None:
        self.last_offset_delta += 1
        self.max_timestamp = now()
        timestamp_delta = self.max_timestamp - self.base_timestamp
        self.records.append(Record(message, timestamp_delta, self.last_offset_delta))

    def _records_block(self) -> bytes:
        writer = Writer()
        compression = self.attributes.compression
        if compression is None:
            writer.array(self.records, lambda w, r: r.write_to(w))
            return writer.getvalue()
        plain = Writer()
        for record in self.records:
            record.write_to(plain)
        # Compressed record data follows the record count directly.
        writer.int32(len(self.records))
        writer.raw(_COMPRESSORS[compression](plain.getvalue()))
        return writer.getvalue()

    def encode(self) -> bytes:
        """Encode the batch: base offset, then the length-prefixed body."""
        body = Writer()
        body.int32(self.partition_leader_epoch)
        body.int8(self.magic)
        body.uint32(0)  # CRC placeholder
        self.attributes.write_to(body)
        body.int32(self.last_offset_delta)
        body.int64(self.base_timestamp)
        body.int64(self.max_timestamp)
        body.int64(self.producer_id)
        body.int16(self.producer_epoch)
        body.int32(self.base_sequence)
        body.raw(self._records_block())

        data = bytearray(body.getvalue())
        crc = to_crc(bytes(data[_CRC_POS + 4 :]))
        data[_CRC_POS : _CRC_POS + 4] = crc.to_bytes(4, "big")

        out = Writer()
        out.int64(self.base_offset)
        out.bytes(bytes(data))
        return out.getvalue()


@dataclass
class _Partition:
    partition: int
    attributes: Attributes
    batches: list[RecordBatch] = field(default_factory=list)

    def add(self, message: Message) -> None:
        # Every message of a partition goes into a single batch.
        if not self.batches:
            self.batches.append(RecordBatch(self.attributes))
        self.batches[0].add(message)

    def write_to(self, writer: Writer) -> None:
        writer.int32(self.partition)
        writer.bytes(b"".join(batch.encode() for batch in self.batches))


@dataclass
class _TopicPartition:
    name: str
    attributes: Attributes
    partitions: list[_Partition] = field(default_factory=list)

    def add(self, partition: int, message: Message) -> None:
        target = next((p for p in self.partitions if p.partition == partition), None)
        if target is None:
            target = _Partition(partition, self.attributes)
            self.partitions.append(target)
        target.add(message)

    def write_to(self, writer: Writer) -> None:
        writer.string(self.name)
        writer.array(self.partitions, lambda w, p: p.write_to(w))


class ProduceRequest:
    """Request carrying messages for one or more topic partitions.

    ``required_acks`` is 0 for no acknowledgement, 1 for the leader only
    and -1 for the full in-sync replica set.
    """

    def __init__(
        self,
        required_acks: int,
        timeout_ms: int,
        correlation_id: int,
        client_id: str,
        attributes: Optional[Attributes] = None,
    ) -> None:
        self.header = HeaderRequest(API_KEY_PRODUCE, API_VERSION, correlation_id, client_id)
        self.transactional_id: Optional[str] = None
        self.required_acks = required_acks
        self.timeout_ms = timeout_ms
        self.attributes = attributes if attributes is not None else Attributes()
        self._topic_partitions: list[_TopicPartition] = []

    def __repr__(self) -> str:
        return (
            f"ProduceRequest(header={self.header!r}, required_acks={self.required_acks}, "
            f"timeout_ms={self.timeout_ms}, topics={[t.name for t in self._topic_partitions]})"
        )

    def add(
        self,
        topic: str,
        partition: int,
        key: Optional[bytes],
        value: Optional[bytes],
        headers: Optional[list[Header]] = None,
    ) -> None:
        message = Message(key, value, list(headers or []))
        target = next((tp for tp in self._topic_partitions if tp.name == topic), None)
        if target is None:
            target = _TopicPartition(topic, self.attributes)
            self._topic_partitions.append(target)
        target.add(partition, message)

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding %r", self)
        self.header.write_to(writer)
        writer.nullable_string(self.transactional_id)
        writer.int16(self.required_acks)
        writer.int32(self.timeout_ms)
        writer.array(self._topic_partitions, lambda w, tp: tp.write_to(w))

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()