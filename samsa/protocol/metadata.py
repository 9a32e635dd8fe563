"""Metadata (version 1): describe brokers, topics and partition leadership.

Metadata can be asked of any broker in the cluster. It reports which topics
exist, how many partitions each has, which broker leads each partition and
where every broker can be reached. An optional list of topic names limits
the answer to those topics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .base import (
    HeaderRequest,
    HeaderResponse,
    KafkaCode,
    KafkaError,
    ParsingError,
    Reader,
    Writer,
    parse_header_response,
)

logger = logging.getLogger(__name__)

API_KEY_METADATA = 3
API_VERSION = 1


@dataclass
class MetadataRequest:
    """Request for cluster metadata about the given topics."""

    correlation_id: int
    client_id: str
    topics: list[str] = field(default_factory=list)
    header: HeaderRequest = field(init=False)

    def __post_init__(self) -> None:
        self.topics = list(self.topics)
        self.header = HeaderRequest(
            API_KEY_METADATA, API_VERSION, self.correlation_id, self.client_id
        )

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding MetadataRequest %r", self)
        self.header.write_to(writer)
        writer.array(self.topics, Writer.string)

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()


@dataclass
class Broker:
    """A broker and the address it listens on."""

    node_id: int
    host: bytes
    port: int
    rack: Optional[bytes] = None


@dataclass
class Partition:
    """Leadership and replica information for one partition."""

    error_code: KafkaCode
    partition_index: int
    leader_id: int
    replica_nodes: list[int] = field(default_factory=list)
    isr_nodes: list[int] = field(default_factory=list)

    def is_error(self, topic_name: Union[str, bytes]) -> None:
        """Raise :class:`KafkaError` if the partition carries an error code."""
        if self.error_code != KafkaCode.NONE:
            logger.error(
                "Kafka error %s in topic %r partition %d",
                self.error_code.name,
                topic_name,
                self.partition_index,
            )
            raise KafkaError(self.error_code)


@dataclass
class Topic:
    """A topic and its partitions."""

    error_code: KafkaCode
    name: bytes
    is_internal: bool
    partitions: list[Partition] = field(default_factory=list)

    def is_error(self) -> None:
        """Raise :class:`KafkaError` if the topic or any partition has an error."""
        if self.error_code != KafkaCode.NONE:
            logger.error("Kafka error %s in topic %r", self.error_code.name, self.name)
            raise KafkaError(self.error_code)
        for partition in self.partitions:
            partition.is_error(self.name)


@dataclass
class MetadataResponse:
    """Broker reply to a Metadata request."""

    header_response: HeaderResponse = field(default_factory=HeaderResponse)
    brokers: list[Broker] = field(default_factory=list)
    controller_id: int = 0
    topics: list[Topic] = field(default_factory=list)

    def is_error(self) -> None:
        """Raise :class:`KafkaError` for the first topic or partition in error."""
        for topic in self.topics:
            topic.is_error()

    @classmethod
    def from_bytes(cls, data: bytes) -> MetadataResponse:
        try:
            return parse_metadata_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing MetadataResponse %r: %s", bytes(data), exc)
            raise ParsingError(bytes(data)) from exc


def _parse_broker(reader: Reader) -> Broker:
    return Broker(
        node_id=reader.int32(),
        host=reader.string(),
        port=reader.int32(),
        rack=reader.nullable_string(),
    )


def _parse_partition(reader: Reader) -> Partition:
    return Partition(
        error_code=reader.kafka_code(),
        partition_index=reader.int32(),
        leader_id=reader.int32(),
        replica_nodes=reader.array(Reader.int32),
        isr_nodes=reader.array(Reader.int32),
    )


def _parse_topic(reader: Reader) -> Topic:
    return Topic(
        error_code=reader.kafka_code(),
        name=reader.string(),
        is_internal=reader.boolean(),
        partitions=reader.array(_parse_partition),
    )


def parse_metadata_response(reader: Reader) -> MetadataResponse:
    header_response = parse_header_response(reader)
    brokers = reader.array(_parse_broker)
    controller_id = reader.int32()
    topics = reader.array(_parse_topic)
    return MetadataResponse(
        header_response=header_response,
        brokers=brokers,
        controller_id=controller_id,
        topics=topics,
    )