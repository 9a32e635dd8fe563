"""Leave Group (version 0): explicitly depart a consumer group."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

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

API_KEY_LEAVE_GROUP = 13
API_VERSION = 0


def _to_text(value: Union[str, bytes, bytearray]) -> str:
    if isinstance(value, str):
        return value
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ArgumentError("member id is not valid UTF-8") from exc


@dataclass
class LeaveGroupRequest:
    """Request to remove a member from a group."""

    correlation_id: int
    client_id: str
    group_id: str
    member_id: Union[str, bytes]
    header: HeaderRequest = field(init=False)

    def __post_init__(self) -> None:
        self.member_id = _to_text(self.member_id)
        self.header = HeaderRequest(
            API_KEY_LEAVE_GROUP, API_VERSION, self.correlation_id, self.client_id
        )

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding LeaveGroupRequest %r", self)
        self.header.write_to(writer)
        writer.string(self.group_id)
        writer.string(self.member_id)

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()


@dataclass
class LeaveGroupResponse:
    """Broker reply to a Leave Group request."""

    header: HeaderResponse
    error_code: KafkaCode

    @classmethod
    def from_bytes(cls, data: bytes) -> LeaveGroupResponse:
        try:
            return parse_leave_group_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing LeaveGroupResponse %r: %s", bytes(data), exc)
            raise ParsingError(bytes(data)) from exc


def parse_leave_group_response(reader: Reader) -> LeaveGroupResponse:
    header = parse_header_response(reader)
    error_code = reader.kafka_code()
    return LeaveGroupResponse(header=header, error_code=error_code)