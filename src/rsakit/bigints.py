"""Integer helpers shared by key generation and the CRT arithmetic.

Python's `int` already is the arbitrary-precision type; what lives here is the extended Euclidean algorithm and the
few things built on top of it, plus the octet string conversions used wherever integers meet bytes, and the
interface every randomness consumer in the package accepts.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import math
import typing


class RandomSource(typing.Protocol):
    """What key generation, plaintext sampling and padding need from a source of randomness.

    `secrets.SystemRandom` (the default everywhere) satisfies it, and so does a seeded `random.Random` in tests.
    """

    def getrandbits(self, k: int) -> int:
        ...

    def randbytes(self, n: int) -> bytes:
        ...


class EGCD(typing.NamedTuple):
    """Results of the extended Euclidean algorithm on the absolute values of a and b.

    Attributes:
        gcd: Greatest common divisor of a and b.
        bcx: Bezout coefficient x, such that a*x + b*y = gcd.
        bcy: Bezout coefficient y, such that a*x + b*y = gcd.
    """
    gcd: int
    bcx: int
    bcy: int


def eea(a: int, b: int) -> EGCD:
    """Implements the Extended Euclidean Algorithm.

    Such that |a|*x + |b|*y = gcd(a, b).

    Args:
        a: The first integer.
        b: The second integer.

    Returns:
        Greatest common divisor of two integers.
        As well as the Bezout coefficients.
    """
    r0, r1 = abs(a), abs(b)
    s0, s1, t0, t1 = 1, 0, 0, 1
    while r1 != 0:
        q = r0 // r1
        r0, r1 = r1, r0 - q * r1
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    return EGCD(r0, s0, t0)


def lcm(a: int, b: int) -> int:
    """Least common multiple of the absolute values of `a` and `b`. Zero if either is zero."""
    return math.lcm(a, b)


def mod_inverse(a: int, m: int) -> int | None:
    """Returns a^-1 mod m in [0, m), or None when gcd(a, m) != 1."""
    res = eea(a, m)
    if res.gcd != 1:
        return None
    return res.bcx % m


def div_mod(a: int, b: int, m: int) -> int:
    """Computes (a / b) mod m.

    Args:
        a: The dividend.
        b: The divisor. Must be invertible modulo `m`.
        m: The modulus.

    Returns:
        The quotient in [0, m).

    Raises:
        ValueError: If `b` has no inverse modulo `m`.
    """
    inv = mod_inverse(b, m)
    if inv is None:
        raise ValueError(f"{b} has no inverse modulo {m}")
    return a * inv % m


def byte_length(n: int) -> int:
    """Number of bytes needed to hold the non-negative integer `n`."""
    return (n.bit_length() + 7) // 8


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to an integer, big-endian and unsigned.

    Args:
        msg: The bytes (AKA Octet String) to convert.

    Returns:
        The representative integer.
    """
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int) -> bytes:
    """Converts an integer to a string, using a fixed-length byte representation.

    Args:
        msg: The integer to unmarshal.
        fixedlen: The target length of the byte string.

    Returns:
        The representative bytes. (AKA Octet String)

    Raises:
        OverflowError: If `msg` does not fit in `fixedlen` bytes.
    """
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)
