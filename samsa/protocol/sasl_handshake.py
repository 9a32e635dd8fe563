"""SASL Handshake (version 1): agree on an authentication mechanism."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

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

API_KEY_SASL_HANDSHAKE = 17
API_VERSION = 1


@dataclass
class SaslHandshakeRequest:
    """Request naming the SASL mechanism the client wants to use."""

    correlation_id: int
    client_id: str
    mechanism: str
    header: HeaderRequest = field(init=False)

    def __post_init__(self) -> None:
        self.header = HeaderRequest(
            API_KEY_SASL_HANDSHAKE, API_VERSION, self.correlation_id, self.client_id
        )

    def write_to(self, writer: Writer) -> None:
        logger.debug("Encoding SaslHandshakeRequest %r", self)
        self.header.write_to(writer)
        writer.string(self.mechanism)

    def encode(self) -> bytes:
        writer = Writer()
        self.write_to(writer)
        return writer.getvalue()


@dataclass
class SaslHandshakeResponse:
    """Broker reply listing the mechanisms it has enabled."""

    header: HeaderResponse
    error_code: KafkaCode
    mechanisms: list[bytes]

    @classmethod
    def from_bytes(cls, data: bytes) -> SaslHandshakeResponse:
        try:
            return parse_handshake_response(Reader(data))
        except ParsingError as exc:
            logger.error("Failed parsing SaslHandshakeResponse %r: %s", bytes(data), exc)
            raise ParsingError(bytes(data)) from exc


def parse_handshake_response(reader: Reader) -> SaslHandshakeResponse:
    header = parse_header_response(reader)
    error_code = reader.kafka_code()
    mechanisms = reader.array(Reader.string)
    return SaslHandshakeResponse(header=header, error_code=error_code, mechanisms=mechanisms)