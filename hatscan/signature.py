"""Byte signatures with wildcards: parsing, building and formatting."""

from __future__ import annotations

import enum
from typing import Iterable, List, Optional, Union

from .strconv import ParseIntError, parse_int

__all__ = [
    "SignatureElement",
    "Signature",
    "SignatureParseErrorKind",
    "SignatureParseError",
    "parse_signature",
    "bytes_to_signature",
    "object_to_signature",
    "string_to_signature",
    "create_signature",
    "to_string",
]

#: A signature element is a byte value (0-255) or ``None`` for a wildcard.
SignatureElement = Optional[int]
Signature = List[SignatureElement]

_BytesLike = Union[bytes, bytearray, memoryview]


class SignatureParseErrorKind(enum.Enum):
    """Why a signature string could not be parsed."""

    MISSING_BYTE = "missing_byte"
    PARSE_ERROR = "parse_error"
    EMPTY_SIGNATURE = "empty_signature"


class SignatureParseError(ValueError):
    """Raised when a signature string is invalid."""

    _MESSAGES = {
        SignatureParseErrorKind.MISSING_BYTE: "signature contains only wildcards",
        SignatureParseErrorKind.PARSE_ERROR: "signature contains an invalid byte",
        SignatureParseErrorKind.EMPTY_SIGNATURE: "signature is empty",
    }

    def __init__(self, kind: SignatureParseErrorKind, text: str) -> None:
        self.kind = kind
        self.text = text
        super().__init__(f"{self._MESSAGES[kind]}: {text!r}")


def parse_signature(text: str) -> Signature:
    """Parse a space separated signature such as ``"48 8B ? ? 05"``.

    Any word starting with ``?`` is a wildcard. Bytes are hexadecimal and
    wrap to 8 bits.
    """
    signature: Signature = []
    contains_byte = False
    for word in text.split(" "):
        if not word:
            continue
        if word[0] == "?":
            signature.append(None)
            continue
        try:
            value = parse_int(word, 16, signed=False)
        except ParseIntError as exc:
            raise SignatureParseError(SignatureParseErrorKind.PARSE_ERROR, text) from exc
        signature.append(value & 0xFF)
        contains_byte = True
    if not signature:
        raise SignatureParseError(SignatureParseErrorKind.EMPTY_SIGNATURE, text)
    if not contains_byte:
        raise SignatureParseError(SignatureParseErrorKind.MISSING_BYTE, text)
    return signature


def bytes_to_signature(data: Iterable[int] | _BytesLike) -> Signature:
    """Turn raw bytes into a signature with no wildcards."""
    return list(bytes(data))


def object_to_signature(value: int | _BytesLike, size: int = 8) -> Signature:
    """Signature of an object's in-memory bytes.

    Integers are laid out little-endian over ``size`` bytes (two's complement
    when negative); bytes-like objects are used as they are.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes_to_signature(value)
    return list(value.to_bytes(size, "little", signed=value < 0))


def string_to_signature(text: str | _BytesLike, encoding: str = "utf-8") -> Signature:
    """Signature that matches the encoded bytes of ``text`` exactly."""
    if isinstance(text, str):
        return bytes_to_signature(text.encode(encoding))
    return bytes_to_signature(text)


def create_signature(data: _BytesLike, mask: Iterable[object]) -> Signature:
    """Build a signature from bytes and a mask; falsy mask entries become wildcards."""
    return [
        byte if present else None
        for byte, present in zip(bytes(data), list(mask), strict=True)
    ]


def to_string(signature: Iterable[SignatureElement]) -> str:
    """Format a signature as upper-case hex bytes with ``?`` wildcards."""
    return " ".join("?" if element is None else f"{element:02X}" for element in signature)