import struct

import pytest

from samsa.protocol.base import HeaderResponse, KafkaCode, ParsingError, Reader
from samsa.protocol.sasl_handshake import (
    SaslHandshakeRequest,
    SaslHandshakeResponse,
    parse_handshake_response,
)


def _response_bytes(correlation_id, code, mechanisms):
    body = struct.pack(">ih", correlation_id, int(code)) + struct.pack(">i", len(mechanisms))
    for mech in mechanisms:
        body += struct.pack(">h", len(mech)) + mech
    return body


def test_encode():
    req = SaslHandshakeRequest(7, "rust", "PLAIN")
    assert req.encode() == b"\x00\x11\x00\x01\x00\x00\x00\x07\x00\x04rust\x00\x05PLAIN"


def test_header_fields():
    req = SaslHandshakeRequest(3, "rust", "SCRAM-SHA-256")
    assert req.header.correlation_id == 3
    assert req.header.client_id == "rust"
    assert req.encode().endswith(b"SCRAM-SHA-256")


def test_parse():
    mechanisms = [b"PLAIN", b"SCRAM-SHA-256"]
    data = _response_bytes(9, KafkaCode.NONE, mechanisms)
    parsed = parse_handshake_response(Reader(data))
    assert parsed == SaslHandshakeResponse(
        header=HeaderResponse(correlation_id=9),
        error_code=KafkaCode.NONE,
        mechanisms=mechanisms,
    )


def test_from_bytes_with_error_code():
    data = _response_bytes(2, KafkaCode.UNSUPPORTED_SASL_MECHANISM, [b"PLAIN"])
    parsed = SaslHandshakeResponse.from_bytes(data)
    assert parsed.error_code is KafkaCode.UNSUPPORTED_SASL_MECHANISM
    assert parsed.mechanisms == [b"PLAIN"]


def test_from_bytes_empty_mechanisms():
    data = _response_bytes(4, KafkaCode.NONE, [])
    assert SaslHandshakeResponse.from_bytes(data).mechanisms == []


def test_from_bytes_truncated_raises():
    data = _response_bytes(2, KafkaCode.NONE, [b"PLAIN"])[:-2]
    with pytest.raises(ParsingError) as info:
        SaslHandshakeResponse.from_bytes(data)
    assert info.value.data == data


def test_unknown_error_code_raises():
    data = struct.pack(">ihi", 1, 31000, 0)
    with pytest.raises(ParsingError):
        SaslHandshakeResponse.from_bytes(data)