"""Offset Fetch (version 2): fetch committed offsets for a consumer group."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

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

API_KEY_OFFSET_FETCH = 9
API_VERSION = 2


@dataclass
class OffsetFetchTopic:
    """A topic and the partition indexes to fetch offsets for."""

    name: str
    partition_indexes: list[int] = field(default_factory=list)

    def write_to(self, writer: Writer) -> None:
        writer.string(self.name)
        writer.array(self.partition_indexes, Writer.int32)


@dataclass
class OffsetFetchRequest:
    """Request for the committed offsets of a group."""

    correlation_id: int
    client_id: str
    group_id: str
    topics: list[OffsetFetchTopic] = field(default_factory=list)
    header: HeaderRequest = field(init=False)

    def __post_init__(self) -> None:
        self.header = HeaderRequest(
            API_KEY_OFFSET_FETCH, API_VERSION, self.correlation_id, self.client_id
        )

    def add(self, topic_name: str, partition_index: int) -> None:
        """Add a partition; duplicates are ignored."""
        topic = next((t for t in self.topics if t.name == topic_name), None)
        if topic is None:
            self.topics.append(OffsetFetchTopic(topic_name, [partition_index]))
        elif partition_index not in topic.partition_indexes:
            topic.partition_indexes.append(partition_index)

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding OffsetFetchRequest %r", self)
        self.header.write_to(writer)
        writer.string(self.group_id)
        writer.array(self.topics, lambda w, t: t.write_to(w))

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()


@dataclass
class PartitionOffset:
    """The committed offset of one partition.

    When nothing is committed the broker sets no error, returns empty
    metadata and an offset of -1.
    """

    partition_index: int
    committed_offset: int
    metadata: Optional[bytes]
    error_code: KafkaCode


@dataclass
class TopicOffsets:
    """Committed offsets of the partitions of one topic."""

    name: bytes
    partitions: list[PartitionOffset] = field(default_factory=list)


@dataclass
class OffsetFetchResponse:
    """Broker reply to an Offset Fetch request."""

    header: HeaderResponse
    topics: list[TopicOffsets]
    error_code: KafkaCode

    @classmethod
    def from_bytes(cls, data: bytes) -> OffsetFetchResponse:
        try:
            return parse_offset_fetch_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing OffsetFetchResponse %r: %s", bytes(data), exc)
            raise ParsingError(bytes(data)) from exc

    def iter_partitions(self) -> Iterator[tuple[bytes, PartitionOffset]]:
        """Yield ``(topic_name, partition)`` for every partition in the reply."""
        for topic in self.topics:
            for partition in topic.partitions:
                yield topic.name, partition


def _parse_partition(reader: Reader) -> PartitionOffset:
    return PartitionOffset(
        partition_index=reader.int32(),
        committed_offset=reader.int64(),
        metadata=reader.nullable_string(),
        error_code=reader.kafka_code(),
    )


def _parse_topic(reader: Reader) -> TopicOffsets:
    name = reader.string()
    partitions = reader.array(_parse_partition)
    return TopicOffsets(name=name, partitions=partitions)


def parse_offset_fetch_response(reader: Reader) -> OffsetFetchResponse:
    header = parse_header_response(reader)
    topics = reader.array(_parse_topic)
    error_code = reader.kafka_code()
    return OffsetFetchResponse(header=header, topics=topics, error_code=error_code)