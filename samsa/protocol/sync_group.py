"""Sync Group (version 2): distribute partition assignments to group members.

The group leader sends every member's assignment in its Sync Group request.
Every member sends the request right after joining, and each receives its
own assignment in the response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .base import (
    ArgumentError,
    HeaderRequest,
    HeaderResponse,
    KafkaCode,
    ParsingError,
    Reader,
    Writer,
    parse_header_response,
)

logger = logging.getLogger(__name__)

API_KEY_SYNC_GROUP = 14
API_VERSION = 2


def _to_text(value: Union[str, bytes, bytearray]) -> str:
    if isinstance(value, str):
        return value
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ArgumentError("member id is not valid UTF-8") from exc


@dataclass
class PartitionAssignment:
    """The partitions of one topic given to a member."""

    topic_name: str
    partitions: list[int] = field(default_factory=list)

    def write_to(self, writer: Writer) -> None:
        writer.string(self.topic_name)
        writer.array(self.partitions, Writer.int32)


@dataclass
class MemberAssignment:
    """Everything assigned to one member."""

    version: int
    partition_assignments: list[PartitionAssignment] = field(default_factory=list)
    user_data: Optional[bytes] = None

    def write_to(self, writer: Writer) -> None:
        writer.int16(self.version)
        writer.array(self.partition_assignments, lambda w, p: p.write_to(w))
        writer.nullable_bytes(self.user_data)


@dataclass
class Assignment:
    """A member and the assignment the leader gives it."""

    member_id: Union[str, bytes]
    assignment: MemberAssignment

    def __post_init__(self) -> None:
        self.member_id = _to_text(self.member_id)

    def write_to(self, writer: Writer) -> None:
        writer.string(self.member_id)
        # The protocol carries the assignment as an opaque byte string.
        inner = Writer()
        self.assignment.write_to(inner)
        writer.bytes(inner.getvalue())


@dataclass
class SyncGroupRequest:
    """Request to synchronise group state; only the leader sends assignments."""

    correlation_id: int
    client_id: str
    group_id: str
    generation_id: int
    member_id: Union[str, bytes]
    assignments: list[Assignment] = field(default_factory=list)
    header: HeaderRequest = field(init=False)

    def __post_init__(self) -> None:
        self.member_id = _to_text(self.member_id)
        self.assignments = list(self.assignments)
        self.header = HeaderRequest(
            API_KEY_SYNC_GROUP, API_VERSION, self.correlation_id, self.client_id
        )

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding SyncGroupRequest %r", self)
        self.header.write_to(writer)
        writer.string(self.group_id)
        writer.int32(self.generation_id)
        writer.string(self.member_id)
        writer.array(self.assignments, lambda w, a: a.write_to(w))

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()


@dataclass
class ReceivedPartitionAssignment:
    """The partitions of one topic as received from the broker."""

    topic_name: bytes
    partitions: list[int] = field(default_factory=list)


@dataclass
class ReceivedAssignment:
    """A member assignment as received from the broker."""

    version: int
    partition_assignments: list[ReceivedPartitionAssignment] = field(default_factory=list)
    user_data: Optional[bytes] = None


@dataclass
class SyncGroupResponse:
    """Broker reply carrying this member's assignment."""

    header: HeaderResponse
    throttle_time_ms: int
    error_code: KafkaCode
    assignment: ReceivedAssignment

    @classmethod
    def from_bytes(cls, data: bytes) -> SyncGroupResponse:
        try:
            return parse_sync_group_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing SyncGroupResponse %r: %s", bytes(data), exc)
            raise ParsingError(bytes(data)) from exc


def _parse_partition_assignment(reader: Reader) -> ReceivedPartitionAssignment:
    topic_name = reader.string()
    partitions = reader.array(Reader.int32)
    return ReceivedPartitionAssignment(topic_name=topic_name, partitions=partitions)


def _parse_member_assignment(reader: Reader) -> ReceivedAssignment:
    version = reader.int16()
    partition_assignments = reader.array(_parse_partition_assignment)
    user_data = reader.nullable_bytes()
    return ReceivedAssignment(
        version=version,
        partition_assignments=partition_assignments,
        user_data=user_data,
    )


def parse_sync_group_response(reader: Reader) -> SyncGroupResponse:
    header = parse_header_response(reader)
    throttle_time_ms = reader.int32()
    error_code = reader.kafka_code()
    reader.int32()  # length of the assignment byte string
    assignment = _parse_member_assignment(reader)
    return SyncGroupResponse(
        header=header,
        throttle_time_ms=throttle_time_ms,
        error_code=error_code,
        assignment=assignment,
    )