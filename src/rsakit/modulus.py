"""Arithmetic modulo n = p * q, accelerated with the Chinese Remainder Theorem.

Working modulo the two half-width primes instead of the full-width modulus makes an exponentiation roughly four
times cheaper: two modexps of cost (n/2)^3 instead of one of cost n^3. The results are recombined with Garner's
formula, which needs the single precomputed factor gf = q^-1 mod p.

The factorization is trusted. Nothing here checks that n == p * q or that p and q are prime; a wrong
factorization silently produces wrong results.

Typical usage example:

    m = CompositeModulus.of(p * q, p, q)
    pow_mod(m, ciphertext, d)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import dataclasses

from rsakit.bigints import div_mod


@dataclasses.dataclass(frozen=True)
class CompositeModulus:
    """The composite modulus n and its two prime factors.

    Attributes:
        n: The modulus, assumed to equal p * q.
        p: One prime factor of n.
        q: The other prime factor of n.
        gf: Garner's formula factor, q^-1 mod p.
    """
    n: int
    p: int
    q: int
    gf: int

    def __post_init__(self) -> None:
        if self.n < 1 or self.p < 1 or self.q < 1 or self.gf < 1:
            raise ValueError("At least one of n, p, q or gf is negative or zero")
        if self.p == self.q:
            raise ValueError("p and q must be distinct")

    @classmethod
    def of(cls, n: int, p: int, q: int) -> "CompositeModulus":
        """Builds the modulus, computing Garner's factor.

        Args:
            n: The modulus.
            p: One prime factor of n.
            q: The other prime factor of n.

        Returns:
            The composite modulus.

        Raises:
            ValueError: If any value is not positive, p == q or q has no inverse modulo p.
        """
        if n < 1 or p < 1 or q < 1:
            raise ValueError("At least one of n, p or q is negative or zero")
        if p == q:
            raise ValueError("p and q must be distinct")
        return cls(n, p, q, div_mod(1, q, p))


def de_crt(m: CompositeModulus, a: int, b: int) -> int:
    """Computes x mod n from its CRT representation (x mod p, x mod q).

    For example, given 6 = 2 * 3 and the pair (1 mod 2, 2 mod 3), returns 5.

    Args:
        m: The composite modulus.
        a: The number modulo p.
        b: The number modulo q.

    Returns:
        The number modulo n.
    """
    return (a - b) % m.p * m.gf % m.p * m.q + b


def multiply(m: CompositeModulus, x: int, y: int) -> int:
    """Computes x * y mod n through the residues modulo p and q."""
    axy = (x % m.p) * (y % m.p) % m.p
    bxy = (x % m.q) * (y % m.q) % m.q
    return de_crt(m, axy, bxy)


def _reduce_exponent(exp: int, order: int) -> int:
    # Keep a positive exponent positive so that bases divisible by the prime still give 0, not 1.
    if exp == 0:
        return 0
    return (exp - 1) % order + 1


def pow_mod(m: CompositeModulus, x: int, exp: int) -> int:
    """Computes x^exp mod n without a full-width exponentiation.

    The exponent is reduced modulo p - 1 and q - 1, the two half-width powers are taken, and Garner's formula
    recombines them.

    Args:
        m: The composite modulus.
        x: The base. Any integer; it is reduced modulo p and q.
        exp: The exponent. Must be >= 0.

    Returns:
        x^exp mod n, in [0, n).

    Raises:
        ValueError: If `exp` is negative.
    """
    if exp < 0:
        raise ValueError("Exponent must be non-negative")
    a = pow(x, _reduce_exponent(exp, m.p - 1), m.p)
    b = pow(x, _reduce_exponent(exp, m.q - 1), m.q)
    return de_crt(m, a, b)
