"""Checksums, timestamps and the record-batch compression codecs."""

from __future__ import annotations

import enum
import gzip
import io
import logging
import time
import zlib
from typing import BinaryIO, Union

import lz4.block
import zstandard

from .protocol.base import SamsaError

logger = logging.getLogger(__name__)


class Compression(enum.Enum):
    """Compression codecs a record batch may use, by attribute bits."""

    GZIP = 1
    SNAPPY = 2
    LZ4 = 3
    ZSTD = 4


def _make_crc32c_table() -> tuple[int, ...]:
    poly = 0x82F63B78
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (c >> 1) ^ poly if c & 1 else c >> 1
        table.append(c)
    return tuple(table)


_CRC32C_TABLE = _make_crc32c_table()


def to_crc(data: bytes) -> int:
    """Return the CRC-32C (Castagnoli) checksum of ``data``."""
    crc = 0xFFFFFFFF
    for byte in data:
        crc = _CRC32C_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


def now() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def compress(src: bytes) -> bytes:
    """Gzip ``src`` at the best compression level."""
    return gzip.compress(bytes(src), compresslevel=9)


def uncompress(src: Union[bytes, bytearray, memoryview, BinaryIO]) -> bytes:
    """Gunzip a byte string or a readable binary stream."""
    stream = src if hasattr(src, "read") else io.BytesIO(bytes(src))
    try:
        with gzip.GzipFile(fileobj=stream, mode="rb") as decoder:
            return decoder.read()
    except (OSError, EOFError, zlib.error) as exc:
        logger.error("Error uncompressing buffer %r", exc)
        raise SamsaError(f"gzip decompression failed: {exc}") from exc


# --- Snappy (raw block format) -------------------------------------------

_SNAPPY_MAX_OFFSET = 0xFFFF


def _uvarint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _read_uvarint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise SamsaError("snappy: truncated length header")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift > 35:
            raise SamsaError("snappy: length header too long")


def _emit_literal(out: bytearray, literal: bytes) -> None:
    if not literal:
        return
    n = len(literal) - 1
    if n < 60:
        out.append(n << 2)
    else:
        width = (n.bit_length() + 7) // 8
        if width > 4:
            raise SamsaError("snappy: literal too long")
        out.append((59 + width) << 2)
        out += n.to_bytes(width, "little")
    out += literal


def _emit_copy(out: bytearray, offset: int, length: int) -> None:
    while length > 0:
        chunk = min(length, 64)
        out.append(((chunk - 1) << 2) | 2)
        out += offset.to_bytes(2, "little")
        length -= chunk


def compress_snappy(src: bytes) -> bytes:
    """Compress ``src`` into the raw Snappy block format."""
    data = bytes(src)
    size = len(data)
    if size >= 1 << 32:
        raise SamsaError("snappy: input too large")
    out = bytearray(_uvarint(size))
    table: dict[bytes, int] = {}
    literal_start = 0
    i = 0
    while i + 4 <= size:
        key = data[i : i + 4]
        candidate = table.get(key)
        table[key] = i
        if candidate is None or i - candidate > _SNAPPY_MAX_OFFSET:
            i += 1
            continue
        length = 4
        while i + length < size and data[candidate + length] == data[i + length]:
            length += 1
        _emit_literal(out, data[literal_start:i])
        _emit_copy(out, i - candidate, length)
        i += length
        literal_start = i
    _emit_literal(out, data[literal_start:])
    return bytes(out)


def uncompress_snappy(src: bytes) -> bytes:
    """Decompress a raw Snappy block."""
    data = bytes(src)
    expected, pos = _read_uvarint(data, 0)
    size = len(data)
    out = bytearray()
    while pos < size:
        tag = data[pos]
        pos += 1
        kind = tag & 3
        if kind == 0:
            length = tag >> 2
            if length >= 60:
                width = length - 59
                if pos + width > size:
                    raise SamsaError("snappy: truncated literal length")
                length = int.from_bytes(data[pos : pos + width], "little")
                pos += width
            length += 1
            if pos + length > size:
                raise SamsaError("snappy: truncated literal")
            out += data[pos : pos + length]
            pos += length
            continue
        if kind == 1:
            if pos >= size:
                raise SamsaError("snappy: truncated copy")
            length = 4 + ((tag >> 2) & 7)
            offset = ((tag >> 5) << 8) | data[pos]
            pos += 1
        else:
            width = 2 if kind == 2 else 4
            if pos + width > size:
                raise SamsaError("snappy: truncated copy")
            length = (tag >> 2) + 1
            offset = int.from_bytes(data[pos : pos + width], "little")
            pos += width
        if offset == 0 or offset > len(out):
            raise SamsaError("snappy: invalid copy offset")
        start = len(out) - offset
        if offset >= length:
            out += out[start : start + length]
        else:
            for k in range(length):
                out.append(out[start + k])
        if len(out) > expected:
            raise SamsaError("snappy: output exceeds declared length")
    if len(out) != expected:
        logger.error("Error decompressing Snappy: length mismatch")
        raise SamsaError("snappy: output length does not match header")
    return bytes(out)


# --- LZ4 and Zstandard ----------------------------------------------------


def compress_lz4(src: bytes) -> bytes:
    """LZ4 block compression with the uncompressed size prepended (4 bytes LE)."""
    return lz4.block.compress(bytes(src), store_size=True)


def uncompress_lz4(src: bytes) -> bytes:
    """Decompress an LZ4 block that carries its size in front."""
    try:
        return lz4.block.decompress(bytes(src))
    except (lz4.block.LZ4BlockError, ValueError) as exc:
        logger.error("Error decompressing LZ4: %r", exc)
        raise SamsaError(f"lz4 decompression failed: {exc}") from exc


def compress_zstd(src: bytes) -> bytes:
    """Compress ``src`` into a Zstandard frame at the fastest level."""
    return zstandard.ZstdCompressor(level=1).compress(bytes(src))


def uncompress_zstd(src: bytes) -> bytes:
    """Decompress a Zstandard frame."""
    data = bytes(src)
    if not data:
        raise SamsaError("zstd: empty input")
    try:
        return zstandard.ZstdDecompressor().decompressobj().decompress(data)
    except zstandard.ZstdError as exc:
        logger.error("Error decompressing Zstd: %r", exc)
        raise SamsaError(f"zstd decompression failed: {exc}") from exc