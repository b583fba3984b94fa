"""Unpadded, canonical base64 as used in the key strings.

RFC 4648 alphabet (`A-Z a-z 0-9 + /`), no `=` padding and no line breaks. Each byte string has exactly one encoding
and each valid string decodes to exactly one byte string: lengths of 1 (mod 4) and non-zero trailing bits are
rejected rather than silently truncated.

Typical usage example:

    s = encode_int(65537)  # "AQAB"
    decode_int(s)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import re

from rsakit.bigints import byte_length
from rsakit.bigints import bytes_to_integer
from rsakit.bigints import integer_to_bytes

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_VALID = re.compile(r"[A-Za-z0-9+/]*")


def encode(data: bytes) -> str:
    """Encodes bytes into ceil(4 * len(data) / 3) base64 characters."""
    return base64.b64encode(data).decode("ascii").rstrip("=")


def decode(text: str) -> bytes:
    """Decodes an unpadded base64 string.

    Args:
        text: The base64 string, without padding.

    Returns:
        The decoded bytes.

    Raises:
        ValueError: On characters outside the alphabet, an impossible length or an over-determined final character.
    """
    if not _VALID.fullmatch(text):
        raise ValueError("Illegal character in base64 string")
    if len(text) % 4 == 1:
        raise ValueError(f"Impossible base64 string length: {len(text)}")
    try:
        data = base64.b64decode(text + "=" * (-len(text) % 4), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Undecodable base64 string: {exc}") from exc
    # The stdlib decoder ignores leftover bits; a canonical string round-trips exactly.
    if encode(data) != text:
        raise ValueError("Non-zero trailing bits in base64 string")
    return data


def encode_int(num: int) -> str:
    """Encodes a non-negative integer as the base64 of its minimal big-endian bytes (zero is one zero byte)."""
    if num < 0:
        raise ValueError("Only non-negative integers can be encoded")
    return encode(integer_to_bytes(num, max(1, byte_length(num))))


def decode_int(text: str) -> int:
    """Decodes a base64 string into a non-negative integer.

    Raises:
        ValueError: If `text` is not valid unpadded base64.
    """
    return bytes_to_integer(decode(text))
