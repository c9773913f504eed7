"""
BlockGraph - Serialization Utilities
======================================
Helper binari (compact size, lettura sequenziale) e JSON.
"""

import json
from typing import Any, Optional, Tuple

from block_graph.constants import (
    COMPACT_SIZE_UINT16,
    COMPACT_SIZE_UINT32,
    COMPACT_SIZE_UINT64,
    HASH_SIZE,
    UINT64_MAX,
)
from block_graph.errors import (
    CodecTypeError,
    InvalidCompactSizeError,
    InvalidFieldError,
    TrailingDataError,
    format_truncation_error,
)


# ============================================================================
# JSON SERIALIZATION
# ============================================================================

def serialize_to_json(obj: Any, indent: Optional[int] = None) -> str:
    """
    Serialize object to JSON string.

    Handles bytes, identifiers and records with to_dict().

    Args:
        obj: Object to serialize
        indent: JSON indentation (None = compact)

    Returns:
        str: JSON string
    """
    def default_handler(o):
        if isinstance(o, (bytes, bytearray)):
            return bytes(o).hex()
        elif hasattr(o, 'to_dict'):
            return o.to_dict()
        else:
            return str(o)

    return json.dumps(obj, default=default_handler, indent=indent)


# ============================================================================
# BYTES/HEX CONVERSION
# ============================================================================

def bytes_to_hex(data: bytes) -> str:
    """
    Convert bytes to hex string.

    Examples:
        >>> bytes_to_hex(b"\\x00\\x01\\x02")
        '000102'
    """
    return bytes(data).hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert hex string to bytes.

    Whitespace is ignored so that hex dumps wrapped over several lines
    can be fed directly.

    Raises:
        InvalidFieldError: If invalid hex string

    Examples:
        >>> hex_to_bytes('000102')
        b'\\x00\\x01\\x02'
    """
    if not isinstance(hex_str, str):
        raise CodecTypeError(
            f"Expected hex string, got {type(hex_str).__name__}",
            code="INVALID_INPUT_TYPE"
        )
    try:
        return bytes.fromhex("".join(hex_str.split()))
    except ValueError as e:
        raise InvalidFieldError(
            f"Invalid hex string: {e}",
            code="INVALID_HEX",
            details={"length": len(hex_str)}
        ) from e


def to_hash_hex(digest: bytes) -> str:
    """
    Hash in ordine interno -> hex display (byte invertiti).

    Examples:
        >>> to_hash_hex(bytes.fromhex("0100"))
        '0001'
    """
    return bytes(digest[::-1]).hex()


def from_hash_hex(hash_hex: str) -> bytes:
    """
    Hex display -> hash in ordine interno (32 byte).

    Raises:
        InvalidFieldError: Hex invalido o lunghezza diversa da 32 byte
    """
    raw = hex_to_bytes(hash_hex)
    if len(raw) != HASH_SIZE:
        raise InvalidFieldError(
            f"Hash must be {HASH_SIZE} bytes, got {len(raw)}",
            code="INVALID_HASH_LENGTH",
            details={"hash": hash_hex}
        )
    return raw[::-1]


# ============================================================================
# COMPACT SIZE
# ============================================================================

def compact_size(value: int) -> bytes:
    """
    Encode integer in Bitcoin compact size format.

    - < 0xfd: 1 byte
    - <= 0xffff: 0xfd + 2 byte LE
    - <= 0xffffffff: 0xfe + 4 byte LE
    - altrimenti: 0xff + 8 byte LE

    Args:
        value: Integer to encode (0 <= value <= 2^64-1)

    Returns:
        bytes: Compact size bytes

    Examples:
        >>> compact_size(252).hex()
        'fc'
        >>> compact_size(253).hex()
        'fdfd00'
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise CodecTypeError(
            f"compact_size requires int, got {type(value).__name__}",
            code="INVALID_INPUT_TYPE"
        )
    if value < 0 or value > UINT64_MAX:
        raise InvalidFieldError(
            f"compact_size out of range: {value}",
            code="COMPACT_SIZE_OUT_OF_RANGE"
        )

    if value < COMPACT_SIZE_UINT16:
        return bytes([value])
    elif value <= 0xffff:
        return b'\xfd' + value.to_bytes(2, 'little')
    elif value <= 0xffffffff:
        return b'\xfe' + value.to_bytes(4, 'little')
    else:
        return b'\xff' + value.to_bytes(8, 'little')


_COMPACT_WIDTHS = {
    COMPACT_SIZE_UINT16: (2, COMPACT_SIZE_UINT16),
    COMPACT_SIZE_UINT32: (4, 0x10000),
    COMPACT_SIZE_UINT64: (8, 0x100000000),
}


def read_compact_size(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Read compact size from bytes.

    Strict: prefissi troncati e codifiche non canoniche (valore che
    stava in una forma più corta) sono rifiutati.

    Args:
        data: Bytes data
        offset: Start offset

    Returns:
        tuple: (value, bytes_read)

    Raises:
        TruncatedBufferError: Buffer troppo corto
        InvalidCompactSizeError: Codifica non canonica
    """
    if offset >= len(data):
        raise format_truncation_error(1, 0, offset, "compact size")

    first = data[offset]
    if first < COMPACT_SIZE_UINT16:
        return first, 1

    width, minimum = _COMPACT_WIDTHS[first]
    end = offset + 1 + width
    if end > len(data):
        raise format_truncation_error(width, len(data) - offset - 1, offset + 1, "compact size")

    value = int.from_bytes(data[offset + 1:end], 'little')
    if value < minimum:
        raise InvalidCompactSizeError(
            f"Non-canonical compact size 0x{first:02x} encoding value {value}",
            code="NON_CANONICAL_COMPACT_SIZE",
            details={"offset": offset, "prefix": first, "value": value}
        )

    return value, 1 + width


# ============================================================================
# SEQUENTIAL READER
# ============================================================================

class ByteReader:
    """
    Lettore sequenziale con bounds checking.

    Ogni lettura verifica la lunghezza residua prima di consumare byte:
    nessuna lettura parziale viene mai restituita.

    Examples:
        >>> reader = ByteReader(bytes.fromhex("01000000fd0001"))
        >>> reader.read_uint32()
        1
        >>> reader.read_compact_size()
        256
    """

    def __init__(self, data: bytes, offset: int = 0):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise CodecTypeError(
                f"ByteReader requires bytes, got {type(data).__name__}",
                code="INVALID_INPUT_TYPE"
            )
        self._data = bytes(data)
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read(self, size: int, what: str = "data") -> bytes:
        """Legge esattamente size byte"""
        if size < 0 or size > self.remaining:
            raise format_truncation_error(size, self.remaining, self._offset, what)
        start = self._offset
        self._offset += size
        return self._data[start:self._offset]

    def peek(self, size: int = 1) -> bytes:
        """Byte successivi senza consumarli (può restituire meno di size)"""
        return self._data[self._offset:self._offset + size]

    def read_uint8(self, what: str = "uint8") -> int:
        return self.read(1, what)[0]

    def read_int32(self, what: str = "int32") -> int:
        return int.from_bytes(self.read(4, what), 'little', signed=True)

    def read_uint32(self, what: str = "uint32") -> int:
        return int.from_bytes(self.read(4, what), 'little')

    def read_int64(self, what: str = "int64") -> int:
        return int.from_bytes(self.read(8, what), 'little', signed=True)

    def read_compact_size(self) -> int:
        value, consumed = read_compact_size(self._data, self._offset)
        self._offset += consumed
        return value

    def read_count(self, min_item_size: int, what: str) -> int:
        """
        Legge un count e verifica che il buffer residuo possa contenerlo.

        Raises:
            InvalidCompactSizeError: count incompatibile con i byte residui
        """
        start = self._offset
        count = self.read_compact_size()
        if count * min_item_size > self.remaining:
            raise InvalidCompactSizeError(
                f"{what} count {count} exceeds remaining buffer ({self.remaining} bytes)",
                code="COUNT_EXCEEDS_BUFFER",
                details={"offset": start, "count": count, "remaining": self.remaining}
            )
        return count

    def read_var_bytes(self, what: str = "var bytes") -> bytes:
        """Compact size length prefix + payload"""
        start = self._offset
        length = self.read_compact_size()
        if length > self.remaining:
            raise InvalidCompactSizeError(
                f"{what} length {length} exceeds remaining buffer ({self.remaining} bytes)",
                code="LENGTH_EXCEEDS_BUFFER",
                details={"offset": start, "length": length, "remaining": self.remaining}
            )
        return self.read(length, what)

    def ensure_end(self, what: str = "structure"):
        """Fallisce se restano byte non consumati"""
        if self.remaining:
            raise TrailingDataError(
                f"{self.remaining} trailing bytes after {what}",
                code="TRAILING_DATA",
                details={"offset": self._offset, "trailing": self.remaining}
            )

    def __repr__(self) -> str:
        return f"ByteReader(offset={self._offset}, remaining={self.remaining})"


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "serialize_to_json",
    "bytes_to_hex",
    "hex_to_bytes",
    "to_hash_hex",
    "from_hash_hex",
    "compact_size",
    "read_compact_size",
    "ByteReader",
]
