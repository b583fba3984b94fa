"""Core Key Generation Utility, mainly focusing on the generation of random large primes.

Generates RSA key pairs carrying two public exponents, one for encryption and one for signing. Prime generation is
probabilistic and a single draw never guarantees an invertible exponent, so every search here is bounded and
failure-tolerant: the inner prime search gives up after `MAX_PRIME_ATTEMPTS_PER_BIT` draws per bit, the outer key
assembly after `MAX_KEY_GENERATION_ATTEMPTS` tries, and exhaustion comes back as a not-ok outcome.

Typical usage example:

    res = generate_keys(2048, 5, 3)
    pair = res.unwrap()
    check_prime(pair.private_key.m.p, certainty=100)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import math
import secrets

from rsakit.bigints import RandomSource
from rsakit.bigints import eea
from rsakit.bigints import lcm
from rsakit.modulus import CompositeModulus
from rsakit.outcome import Outcome
from rsakit.outcome import failure
from rsakit.outcome import success
from rsakit.rsa import RSAKeyPair
from rsakit.rsa import RSAPrivateKey
from rsakit.rsa import RSAPublicKey

logger = logging.getLogger(__name__)

MAX_PRIME_ATTEMPTS_PER_BIT: int = 100
PRIME_CERTAINTY: int = 100
MAX_KEY_GENERATION_ATTEMPTS: int = 100
SHORTEST_REASONABLE_MODULUS_BIT_LENGTH: int = 2000
LONGEST_REASONABLE_MODULUS_BIT_LENGTH: int = 10000
DEFAULT_PUBLIC_ENCRYPTING_EXPONENT: int = 5
DEFAULT_PUBLIC_SIGNING_EXPONENT: int = 3
_SMALL_PRIMES_CAP: int = 10000


class PrimeSearchError(RuntimeError):
    """The prime search ran out of attempts.

    Attributes:
        attempts: The number of candidates drawn before giving up.
    """

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Includes memory space optimization and sieving until root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    result = [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]
    return result


SMALL_PRIMES: tuple[int, ...] = tuple(_sieve(_SMALL_PRIMES_CAP))


def _trial_division(no: int) -> bool:
    """Check the provided `no` against the known small primes.

    Runs a fast pre-check before Miller-Rabin by using modulo division on our known frequent primes.

    Args:
         no: The number to check. Must be integer and non-negative.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    for prime in SMALL_PRIMES:
        if prime**2 > no:
            return True
        if no % prime == 0:
            return False
    return True


def _miller_rabin(w: int, iters: int) -> bool:
    """Perform Miller-Rabin primality test.

    Performs the Miller-Rabin primality test as specified in FIPS 186-5. Each round lets a composite through with
    probability at most 1/4.

    Args:
        w: Odd integer to be tested.
        iters: Number of Miller-Rabin iterations to perform.

    Returns:
        True if `w` is probably prime, False otherwise.
    """
    if w <= 3:
        return w == 2 or w == 3
    if w % 2 == 0:
        return False
    tw = w - 1
    a = (tw & -tw).bit_length() - 1
    m = tw >> a
    for _ in range(iters):
        b = secrets.randbelow(w - 3) + 2
        z = pow(b, m, w)
        if z == 1 or z == tw:
            continue
        for _ in range(1, a):
            z = pow(z, 2, w)
            if z == tw:
                break
            if z == 1:
                return False
        else:
            return False
    return True


def check_prime(candidate: int, iters: int | None = None, certainty: int | None = None) -> bool:
    """Performs a composite Primality test, using a limited amount of trial divisions, before a Miller-Rabin test.

    Args:
        candidate: The candidate prime to test.
        iters: Number of Miller-Rabin iterations to perform. Takes precedence over `certainty`.
        certainty: Accept a composite with probability at most 2^-certainty.
            If neither is provided will use defaults as per the FIPS 186-5 Appendix C.1

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate):
        return False
    if iters is None and certainty is not None:
        iters = max(1, math.ceil(certainty / 2))
    if iters is None:
        if candidate.bit_length() <= 512:
            iters = 40
        elif candidate.bit_length() <= 1024:
            iters = 56
        elif candidate.bit_length() <= 1536:
            iters = 64
        elif candidate.bit_length() <= 2048:
            iters = 70
        else:
            iters = 74
    return _miller_rabin(candidate, iters)


def generate_rsa_prime(bit_length: int, e_encrypting: int, e_signing: int, rng: RandomSource | None = None) -> int:
    """Draws a random probable prime suitable as an RSA p or q.

    A candidate qualifies when its bit length is at least an eighth of `bit_length`, it is not 1 modulo either public
    exponent (that would leave the private exponent uninvertible), and it passes `check_prime` at certainty
    `PRIME_CERTAINTY`. The candidate is uniform over [0, 2^bit_length), so the top bit is not forced.

    Args:
        bit_length: Bit length of the random draws.
        e_encrypting: The public encrypting exponent.
        e_signing: The public signing exponent.
        rng: Source of randomness. Defaults to `secrets.SystemRandom()`.

    Returns:
        A probable prime.

    Raises:
        ValueError: If `bit_length` is not positive.
        PrimeSearchError: After `MAX_PRIME_ATTEMPTS_PER_BIT * bit_length` unsuitable draws.
    """
    if bit_length < 1:
        raise ValueError("Bit length must be positive.")
    rng = rng or secrets.SystemRandom()
    cap = MAX_PRIME_ATTEMPTS_PER_BIT * bit_length
    for _ in range(cap):
        trial = rng.getrandbits(bit_length)
        if trial.bit_length() < (bit_length >> 3):
            continue
        if trial % e_encrypting == 1 or trial % e_signing == 1:
            continue
        if check_prime(trial, certainty=PRIME_CERTAINTY):
            return trial
    raise PrimeSearchError(f"Couldn't find a suitable RSA prime within {cap} attempts.", cap)


def _validate(modulus_bit_length: int, e_enc: int, e_sig: int, lo: int, hi: int) -> str | None:
    """Returns the first reason the parameters are unusable, or None."""
    if hi < lo or lo < 1000 or hi > 20000:
        return f"Modulus bit length limits are not reasonable: {lo}/{hi}"
    if modulus_bit_length < lo:
        return f"{modulus_bit_length} is an unreasonably short bit length for a modulus"
    if modulus_bit_length > hi:
        return f"{modulus_bit_length} is an unreasonably long bit length for a modulus"
    if modulus_bit_length % 2:
        return f"{modulus_bit_length} is an odd bit length for a modulus"
    if not 3 <= e_enc <= 99999:
        return f"{e_enc} e_pub_encrypting is not in [3..99999]"
    if not 3 <= e_sig <= 99999:
        return f"{e_sig} e_pub_signing is not in [3..99999]"
    if e_enc % 2 == 0:
        return "e_pub_encrypting is not odd"
    if e_sig % 2 == 0:
        return "e_pub_signing is not odd"
    if e_enc == e_sig:
        return "e_pub_encrypting cannot be the same value as e_pub_signing"
    if eea(e_enc, e_sig).gcd != 1:
        return f"{e_enc} and {e_sig} have one or more common factors"
    return None


def generate_keys(modulus_bit_length: int,
                  e_pub_encrypting: int = DEFAULT_PUBLIC_ENCRYPTING_EXPONENT,
                  e_pub_signing: int = DEFAULT_PUBLIC_SIGNING_EXPONENT,
                  bit_length_lo_limit: int = SHORTEST_REASONABLE_MODULUS_BIT_LENGTH,
                  bit_length_hi_limit: int = LONGEST_REASONABLE_MODULUS_BIT_LENGTH,
                  rng: RandomSource | None = None) -> Outcome:
    """Generates a complementary pair of RSA keys.

    The parameters are validated first; nothing random happens unless all checks pass. Then up to
    `MAX_KEY_GENERATION_ATTEMPTS` times a p and q of half the modulus length are drawn, and the attempt is retried
    when p == q, when p * q misses the requested bit length, or when either public exponent is not invertible modulo
    t = lcm(p - 1, q - 1).

    Args:
        modulus_bit_length: The desired bit length of n. Must be in [bit_length_lo_limit, bit_length_hi_limit]
            and even, since p and q are each drawn at half that length.
        e_pub_encrypting: The public encrypting exponent. Odd, in [3, 99999].
        e_pub_signing: The public signing exponent. Odd, in [3, 99999], distinct from and coprime to
            `e_pub_encrypting`.
        bit_length_lo_limit: Lower limit for the modulus bit length. Must be >= 1000.
        bit_length_hi_limit: Upper limit for the modulus bit length. Must be <= 20000.
        rng: Source of randomness. Defaults to `secrets.SystemRandom()`.

    Returns:
        An ok outcome with an `RSAKeyPair`, or a not-ok outcome explaining the rejected parameter or the exhausted
        search.
    """
    problem = _validate(modulus_bit_length, e_pub_encrypting, e_pub_signing, bit_length_lo_limit,
                        bit_length_hi_limit)
    if problem is not None:
        return failure(problem)
    rng = rng or secrets.SystemRandom()
    half = modulus_bit_length >> 1
    attempts = 0
    while attempts < MAX_KEY_GENERATION_ATTEMPTS:
        attempts += 1
        try:
            p = generate_rsa_prime(half, e_pub_encrypting, e_pub_signing, rng)
            q = generate_rsa_prime(half, e_pub_encrypting, e_pub_signing, rng)
        except PrimeSearchError as exc:
            logger.warning("Prime search exhausted after %d attempts", exc.attempts)
            return failure(str(exc), exc)
        if p == q:  # (Un)Likely story.
            continue
        n = p * q
        if n.bit_length() != modulus_bit_length:
            logger.debug("Attempt %d: modulus has %d bits, retrying", attempts, n.bit_length())
            continue
        t = lcm(p - 1, q - 1)
        egcd = eea(e_pub_encrypting, t)
        if egcd.gcd != 1:
            logger.debug("Attempt %d: encrypting exponent shares a factor with t, retrying", attempts)
            continue
        d_encrypting = egcd.bcx % t
        egcd = eea(e_pub_signing, t)
        if egcd.gcd != 1:
            logger.debug("Attempt %d: signing exponent shares a factor with t, retrying", attempts)
            continue
        d_signing = egcd.bcx % t
        logger.debug("Generated %d bit RSA key pair after %d attempts", modulus_bit_length, attempts)
        pub = RSAPublicKey(n, e_pub_encrypting, e_pub_signing)
        priv = RSAPrivateKey(CompositeModulus.of(n, p, q), t, d_encrypting, d_signing)
        return success(RSAKeyPair(pub, priv))
    logger.warning("Key generation gave up after %d attempts", attempts)
    return failure(f"Could not generate RSA keys after {attempts} attempts")
