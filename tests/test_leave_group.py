import pytest

from samsa.protocol.base import (
    ArgumentError,
    HeaderResponse,
    KafkaCode,
    ParsingError,
    Reader,
    Writer,
)
from samsa.protocol.leave_group import (
    LeaveGroupRequest,
    LeaveGroupResponse,
    parse_leave_group_response,
)


def test_encode():
    expected = bytes(
        [
            0, 13, 0, 0, 0, 0, 0, 1, 0, 4, 114, 117, 115, 116, 0, 8, 66, 105, 103, 32,
            68, 111, 103, 115, 0, 0,
        ]
    )
    req = LeaveGroupRequest(1, "rust", "Big Dogs", b"")
    assert req.encode() == expected


def test_write_to_matches_encode():
    req = LeaveGroupRequest(1, "rust", "Big Dogs", "member-1")
    writer = Writer()
    req.write_to(writer)
    assert writer.getvalue() == req.encode()
    assert req.member_id == "member-1"


def test_parse():
    data = b"\0\0\0\x01\0\0"
    expected = LeaveGroupResponse(
        header=HeaderResponse(correlation_id=1), error_code=KafkaCode.NONE
    )
    assert parse_leave_group_response(Reader(data)) == expected


def test_from_bytes():
    data = b"\0\0\0\x01\0\0"
    assert LeaveGroupResponse.from_bytes(data).header.correlation_id == 1


def test_from_bytes_truncated_raises():
    with pytest.raises(ParsingError) as info:
        LeaveGroupResponse.from_bytes(b"\0\0\0\x01\0")
    assert info.value.data == b"\0\0\0\x01\0"


def test_invalid_utf8_member_id_raises():
    with pytest.raises(ArgumentError):
        LeaveGroupRequest(1, "rust", "Big Dogs", b"\xff\xfe")


def test_header_fields():
    req = LeaveGroupRequest(7, "rust", "Big Dogs", b"")
    assert (req.header.api_key, req.header.api_version) == (13, 0)
    assert req.header.correlation_id == 7