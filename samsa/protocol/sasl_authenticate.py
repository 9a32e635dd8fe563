"""SASL Authenticate (version 1): exchange SASL authentication bytes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

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

API_KEY_SASL_AUTHENTICATE = 36
API_VERSION = 1


@dataclass
class SaslAuthenticationRequest:
    """Request carrying the client's SASL mechanism bytes."""

    correlation_id: int
    client_id: str
    auth_bytes: bytes
    header: HeaderRequest = field(init=False)

    def __post_init__(self) -> None:
        self.auth_bytes = bytes(self.auth_bytes)
        self.header = HeaderRequest(
            API_KEY_SASL_AUTHENTICATE, API_VERSION, self.correlation_id, self.client_id
        )

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding SaslAuthenticationRequest for %r", self.client_id)
        self.header.write_to(writer)
        writer.bytes(self.auth_bytes)

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()


@dataclass
class SaslAuthenticationResponse:
    """Broker reply carrying the server's SASL bytes."""

    header: HeaderResponse
    error_code: KafkaCode
    error_message: Optional[bytes]
    auth_bytes: bytes
    session_lifetime_ms: int

    @classmethod
    def from_bytes(cls, data: bytes) -> SaslAuthenticationResponse:
        try:
            return parse_authenticate_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing SaslAuthenticationResponse: %s", exc)
            raise ParsingError(bytes(data)) from exc


def parse_authenticate_response(reader: Reader) -> SaslAuthenticationResponse:
    header = parse_header_response(reader)
    error_code = reader.kafka_code()
    error_message = reader.nullable_string()
    auth_bytes = reader.bytes()
    session_lifetime_ms = reader.int64()
    return SaslAuthenticationResponse(
        header=header,
        error_code=error_code,
        error_message=error_message,
        auth_bytes=auth_bytes,
        session_lifetime_ms=session_lifetime_ms,
    )