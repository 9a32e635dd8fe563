"""Produce response (version 3): the broker's reply to sent messages.

A reply is only sent when the request asked for a non-zero number of acks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .base import (
    HeaderResponse,
    KafkaCode,
    ParsingError,
    Reader,
    parse_header_response,
)

logger = logging.getLogger(__name__)


@dataclass
class PartitionProduceResponse:
    """Result of producing to one partition.

    ``log_append_time`` is -1 when the topic uses CreateTime, otherwise the
    broker's local time when the messages were appended.
    """

    index: int
    error_code: KafkaCode
    base_offset: int
    log_append_time: int


@dataclass
class TopicProduceResponse:
    """Results for every partition produced to within one topic."""

    name: bytes
    partition_responses: list[PartitionProduceResponse] = field(default_factory=list)


@dataclass
class ProduceResponse:
    """Broker reply to a Produce request."""

    header: HeaderResponse
    responses: list[TopicProduceResponse] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes) -> ProduceResponse:
        try:
            return parse_produce_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing ProduceResponse %r: %s", bytes(data), exc)
            raise ParsingError(bytes(data)) from exc


def parse_partition_response(reader: Reader) -> PartitionProduceResponse:
    return PartitionProduceResponse(
        index=reader.int32(),
        error_code=reader.kafka_code(),
        base_offset=reader.int64(),
        log_append_time=reader.int64(),
    )


def parse_topic_response(reader: Reader) -> TopicProduceResponse:
    name = reader.string()
    partition_responses = reader.array(parse_partition_response)
    return TopicProduceResponse(name=name, partition_responses=partition_responses)


def parse_produce_response(reader: Reader) -> ProduceResponse:
    header = parse_header_response(reader)
    responses = reader.array(parse_topic_response)
    return ProduceResponse(header=header, responses=responses)