"""Primitive wire encoding, errors and request/response headers."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, TypeVar, Union

T = TypeVar("T")


class KafkaCode(enum.IntEnum):
    """Error codes returned by the broker."""

    UNKNOWN_SERVER_ERROR = -1
    NONE = 0
    OFFSET_OUT_OF_RANGE = 1
    CORRUPT_MESSAGE = 2
    UNKNOWN_TOPIC_OR_PARTITION = 3
    INVALID_FETCH_SIZE = 4
    LEADER_NOT_AVAILABLE = 5
    NOT_LEADER_OR_FOLLOWER = 6
    REQUEST_TIMED_OUT = 7
    BROKER_NOT_AVAILABLE = 8
    REPLICA_NOT_AVAILABLE = 9
    MESSAGE_TOO_LARGE = 10
    STALE_CONTROLLER_EPOCH = 11
    OFFSET_METADATA_TOO_LARGE = 12
    NETWORK_EXCEPTION = 13
    COORDINATOR_LOAD_IN_PROGRESS = 14
    COORDINATOR_NOT_AVAILABLE = 15
    NOT_COORDINATOR = 16
    INVALID_TOPIC_EXCEPTION = 17
    RECORD_LIST_TOO_LARGE = 18
    NOT_ENOUGH_REPLICAS = 19
    NOT_ENOUGH_REPLICAS_AFTER_APPEND = 20
    INVALID_REQUIRED_ACKS = 21
    ILLEGAL_GENERATION = 22
    INCONSISTENT_GROUP_PROTOCOL = 23
    INVALID_GROUP_ID = 24
    UNKNOWN_MEMBER_ID = 25
    INVALID_SESSION_TIMEOUT = 26
    REBALANCE_IN_PROGRESS = 27
    INVALID_COMMIT_OFFSET_SIZE = 28
    TOPIC_AUTHORIZATION_FAILED = 29
    GROUP_AUTHORIZATION_FAILED = 30
    CLUSTER_AUTHORIZATION_FAILED = 31
    INVALID_TIMESTAMP = 32
    UNSUPPORTED_SASL_MECHANISM = 33
    ILLEGAL_SASL_STATE = 34
    UNSUPPORTED_VERSION = 35
    TOPIC_ALREADY_EXISTS = 36
    INVALID_PARTITIONS = 37
    INVALID_REPLICATION_FACTOR = 38
    INVALID_REPLICA_ASSIGNMENT = 39
    INVALID_CONFIG = 40
    NOT_CONTROLLER = 41
    INVALID_REQUEST = 42
    UNSUPPORTED_FOR_MESSAGE_FORMAT = 43
    POLICY_VIOLATION = 44
    OUT_OF_ORDER_SEQUENCE_NUMBER = 45
    DUPLICATE_SEQUENCE_NUMBER = 46
    INVALID_PRODUCER_EPOCH = 47
    INVALID_TXN_STATE = 48
    INVALID_PRODUCER_ID_MAPPING = 49
    INVALID_TRANSACTION_TIMEOUT = 50
    CONCURRENT_TRANSACTIONS = 51
    TRANSACTION_COORDINATOR_FENCED = 52
    TRANSACTIONAL_ID_AUTHORIZATION_FAILED = 53
    SECURITY_DISABLED = 54
    OPERATION_NOT_ATTEMPTED = 55
    KAFKA_STORAGE_ERROR = 56
    LOG_DIR_NOT_FOUND = 57
    SASL_AUTHENTICATION_FAILED = 58
    UNKNOWN_PRODUCER_ID = 59
    REASSIGNMENT_IN_PROGRESS = 60
    DELEGATION_TOKEN_AUTH_DISABLED = 61
    DELEGATION_TOKEN_NOT_FOUND = 62
    DELEGATION_TOKEN_OWNER_MISMATCH = 63
    DELEGATION_TOKEN_REQUEST_NOT_ALLOWED = 64
    DELEGATION_TOKEN_AUTHORIZATION_FAILED = 65
    DELEGATION_TOKEN_EXPIRED = 66
    INVALID_PRINCIPAL_TYPE = 67
    NON_EMPTY_GROUP = 68
    GROUP_ID_NOT_FOUND = 69
    FETCH_SESSION_ID_NOT_FOUND = 70
    INVALID_FETCH_SESSION_EPOCH = 71
    LISTENER_NOT_FOUND = 72
    TOPIC_DELETION_DISABLED = 73
    FENCED_LEADER_EPOCH = 74
    UNKNOWN_LEADER_EPOCH = 75
    UNSUPPORTED_COMPRESSION_TYPE = 76
    STALE_BROKER_EPOCH = 77
    OFFSET_NOT_AVAILABLE = 78
    MEMBER_ID_REQUIRED = 79
    PREFERRED_LEADER_NOT_AVAILABLE = 80
    GROUP_MAX_SIZE_REACHED = 81
    FENCED_INSTANCE_ID = 82


class SamsaError(Exception):
    """Base class of every error raised by this package."""


class ParsingError(SamsaError):
    """Bytes from the broker could not be parsed."""

    def __init__(self, data: bytes = b"", message: Optional[str] = None) -> None:
        self.data = bytes(data)
        super().__init__(message or f"failed to parse {len(self.data)} bytes")


class KafkaError(SamsaError):
    """The broker answered with a non-zero error code."""

    def __init__(self, code: KafkaCode) -> None:
        self.code = code
        super().__init__(f"Kafka error {code.name} ({int(code)})")


class ArgumentError(SamsaError):
    """A value given by the caller cannot be used."""


def _pack(fmt: str, value: Any) -> bytes:
    try:
        return struct.pack(fmt, value)
    except struct.error as exc:
        raise ArgumentError(f"cannot encode {value!r}: {exc}") from exc


def _as_bytes(value: Union[str, bytes, bytearray, memoryview]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class Writer:
    """Builds a big-endian Kafka wire message."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def int8(self, value: int) -> Writer:
        self._buffer += _pack(">b", value)
        return self

    def int16(self, value: int) -> Writer:
        self._buffer += _pack(">h", value)
        return self

    def int32(self, value: int) -> Writer:
        self._buffer += _pack(">i", value)
        return self

    def int64(self, value: int) -> Writer:
        self._buffer += _pack(">q", value)
        return self

    def uint32(self, value: int) -> Writer:
        self._buffer += _pack(">I", value)
        return self

    def varint(self, value: int) -> Writer:
        """Zig-zag encoded variable-length integer, as used in records."""
        if not -(1 << 63) <= value < (1 << 63):
            raise ArgumentError(f"varint out of range: {value}")
        zigzag = (value << 1) ^ (value >> 63)
        zigzag &= (1 << 64) - 1
        while True:
            byte = zigzag & 0x7F
            zigzag >>= 7
            if zigzag:
                self._buffer.append(byte | 0x80)
            else:
                self._buffer.append(byte)
                return self

    def string(self, value: Union[str, bytes]) -> Writer:
        data = _as_bytes(value)
        if len(data) > 0x7FFF:
            raise ArgumentError("string longer than 32767 bytes")
        self.int16(len(data))
        self._buffer += data
        return self

    def nullable_string(self, value: Optional[Union[str, bytes]]) -> Writer:
        if value is None:
            return self.int16(-1)
        return self.string(value)

    def bytes(self, value: Union[str, bytes]) -> Writer:
        data = _as_bytes(value)
        self.int32(len(data))
        self._buffer += data
        return self

    def nullable_bytes(self, value: Optional[Union[str, bytes]]) -> Writer:
        if value is None:
            return self.int32(-1)
        return self.bytes(value)

    def raw(self, data: bytes) -> Writer:
        self._buffer += data
        return self

    def array(self, items: Iterable[T], write_item: Callable[[Writer, T], Any]) -> Writer:
        items = list(items)
        self.int32(len(items))
        for item in items:
            write_item(self, item)
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class Reader:
    """Reads big-endian Kafka wire values from a byte string."""

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _take(self, count: int) -> bytes:
        end = self._pos + count
        if count < 0 or end > len(self._data):
            raise ParsingError(
                self._data, f"need {count} bytes at offset {self._pos}, have {len(self._data) - self._pos}"
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def _unpack(self, fmt: str, size: int) -> int:
        return struct.unpack(fmt, self._take(size))[0]

    def int8(self) -> int:
        return self._unpack(">b", 1)

    def int16(self) -> int:
        return self._unpack(">h", 2)

    def int32(self) -> int:
        return self._unpack(">i", 4)

    def int64(self) -> int:
        return self._unpack(">q", 8)

    def boolean(self) -> bool:
        return self.int8() != 0

    def string(self) -> bytes:
        length = self.int16()
        if length < 0:
            raise ParsingError(self._data, f"negative string length {length}")
        return self._take(length)

    def nullable_string(self) -> Optional[bytes]:
        length = self.int16()
        if length == -1:
            return None
        if length < 0:
            raise ParsingError(self._data, f"invalid string length {length}")
        return self._take(length)

    def bytes(self) -> bytes:
        length = self.int32()
        if length < 0:
            raise ParsingError(self._data, f"negative bytes length {length}")
        return self._take(length)

    def nullable_bytes(self) -> Optional[bytes]:
        length = self.int32()
        if length == -1:
            return None
        if length < 0:
            raise ParsingError(self._data, f"invalid bytes length {length}")
        return self._take(length)

    def kafka_code(self) -> KafkaCode:
        value = self.int16()
        try:
            return KafkaCode(value)
        except ValueError as exc:
            raise ParsingError(self._data, f"unknown error code {value}") from exc

    def array(self, parse_item: Callable[[Reader], T]) -> list[T]:
        count = self.int32()
        if count == -1:
            return []
        if count < 0:
            raise ParsingError(self._data, f"invalid array length {count}")
        return [parse_item(self) for _ in range(count)]

    def remaining(self) -> bytes:
        return self._data[self._pos :]


@dataclass
class HeaderRequest:
    """The header sent at the start of every request."""

    api_key: int
    api_version: int
    correlation_id: int
    client_id: str

    def write_to(self, writer: Writer) -> None:
        writer.int16(self.api_key)
        writer.int16(self.api_version)
        writer.int32(self.correlation_id)
        writer.string(self.client_id)


@dataclass
class HeaderResponse:
    """The header at the start of every response."""

    correlation_id: int = 0


def parse_header_response(reader: Reader) -> HeaderResponse:
    return HeaderResponse(correlation_id=reader.int32())