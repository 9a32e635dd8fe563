"""List Offsets (version 1): find available offsets for topic partitions.

A timestamp of -1 asks for the latest offset (the offset of the next message
to arrive) and -2 for the earliest available offset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

from .base import (
    HeaderRequest,
    HeaderResponse,
    KafkaCode,
    ParsingError,
    Reader,
    Writer,
    parse_header_response,
)

logger = logging.getLogger(__name__)

API_KEY_LIST_OFFSETS = 2
API_VERSION = 1


@dataclass
class PartitionRequest:
    """One partition to look up."""

    partition_index: int
    timestamp: int

    def write_to(self, writer: Writer) -> None:
        writer.int32(self.partition_index)
        writer.int64(self.timestamp)


@dataclass
class TopicRequest:
    """One topic to look up, with its partitions."""

    name: str
    partitions: list[PartitionRequest] = field(default_factory=list)

    def write_to(self, writer: Writer) -> None:
        writer.string(self.name)
        writer.array(self.partitions, lambda w, p: p.write_to(w))


@dataclass
class ListOffsetsRequest:
    """Request for the offsets of a set of topic partitions."""

    correlation_id: int
    client_id: str
    replica_id: int
    topics: list[TopicRequest] = field(default_factory=list)
    header: HeaderRequest = field(init=False)

    def __post_init__(self) -> None:
        self.header = HeaderRequest(
            API_KEY_LIST_OFFSETS, API_VERSION, self.correlation_id, self.client_id
        )

    def add(self, topic_name: str, partition_index: int, timestamp: int) -> None:
        """Add a partition; a partition already present is left unchanged."""
        topic = next((t for t in self.topics if t.name == topic_name), None)
        if topic is None:
            self.topics.append(
                TopicRequest(topic_name, [PartitionRequest(partition_index, timestamp)])
            )
            return
        if not any(p.partition_index == partition_index for p in topic.partitions):
            topic.partitions.append(PartitionRequest(partition_index, timestamp))

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding ListOffsetsRequest %r", self)
        self.header.write_to(writer)
        writer.int32(self.replica_id)
        writer.array(self.topics, lambda w, t: t.write_to(w))

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()


@dataclass
class PartitionResponse:
    """Offset information for one partition."""

    partition_index: int
    error_code: KafkaCode
    timestamp: int
    offset: int


@dataclass
class TopicResponse:
    """Offset information for one topic."""

    name: bytes
    partitions: list[PartitionResponse] = field(default_factory=list)


@dataclass
class ListOffsetsResponse:
    """Broker reply to a List Offsets request."""

    header: HeaderResponse
    topics: list[TopicResponse] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes) -> ListOffsetsResponse:
        try:
            return parse_list_offsets_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing ListOffsetsResponse %r: %s", bytes(data), exc)
            raise ParsingError(bytes(data)) from exc

    def iter_partitions(self) -> Iterator[tuple[bytes, PartitionResponse]]:
        """Yield ``(topic_name, partition)`` for every partition in the reply."""
        for topic in self.topics:
            for partition in topic.partitions:
                yield topic.name, partition


def _parse_partition(reader: Reader) -> PartitionResponse:
    return PartitionResponse(
        partition_index=reader.int32(),
        error_code=reader.kafka_code(),
        timestamp=reader.int64(),
        offset=reader.int64(),
    )


def _parse_topic(reader: Reader) -> TopicResponse:
    name = reader.string()
    partitions = reader.array(_parse_partition)
    return TopicResponse(name=name, partitions=partitions)


def parse_list_offsets_response(reader: Reader) -> ListOffsetsResponse:
    header = parse_header_response(reader)
    topics = reader.array(_parse_topic)
    return ListOffsetsResponse(header=header, topics=topics)