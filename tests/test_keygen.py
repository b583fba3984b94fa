# pylint: disable=protected-access,missing-module-docstring,redefined-outer-name
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import math
import random

import pytest
import sympy

from rsakit import keygen
from rsakit.rsa import RSAKeyPair

base_primetest_cases = [
    # Edge Cases (neither)
    (0, False),
    (1, False),
    # Known Primes
    (2, True),
    (3, True),
    (101, True),
    (3571, True),
    (9973, True),
    # Composite
    (4, False),
    (6, False),
    (9, False),
    # Fermat Pseudoprimes (numbers that fool naive tests)
    (341, False),  # 11 * 31
    (561, False),  # 3 * 11 * 17 (Carmichael number)
    (1105, False),  # 5 * 13 * 17 (Carmichael number)
    # Pseudo-prime (PsP)
    (121, False),
    (703, False),
    (781, False),
    (1541, False),
    (2047, False),
    (52633, False),
]

large_primetest_cases = [
    # Mersenne primes
    (2**127 - 1, True),
    (2**521 - 1, True),
    pytest.param(2**4423 - 1, True, marks=pytest.mark.slow, id="LargeInt-4423bits"),
    # Beyond the trial division table
    (10007 * 10009, False),
    ((2**127 - 1) * 3, False),
    ((2**127 - 1) * (2**61 - 1), False),
    ((2**521 - 1) * (2**127 - 1), False),
    (2**521 + 1, False),
    # Strong pseudoprime to bases 2, 3, 5, 7, 11, 13, 17, 19, 23
    (3825123056546413051, False),
]


def id_generator(param):
    if isinstance(param, int) and param > 1000000:
        return f"LargeInt-{param.bit_length()}bits"
    return str(param)


def one_thousand_bit_prime(*exponents: int) -> int:
    """A prime of exactly 1000 bits, large enough that any two multiply to 2000 bits."""
    while True:
        p = sympy.randprime(3 * 2**998, 2**1000)
        if all(p % e != 1 for e in exponents):
            return p


@pytest.mark.parametrize("n", [0, 1, 2, 20, 50, 1000, 5000, 10000])
def test_sieve_sane(n):
    assert keygen._sieve(n) == list(sympy.primerange(0, n + 1))


def test_small_primes_table():
    assert keygen.SMALL_PRIMES == tuple(sympy.primerange(0, 10001))
    assert len(keygen.SMALL_PRIMES) == 1229


@pytest.mark.parametrize("num,expected", base_primetest_cases, ids=id_generator)
def test_trial_division(num, expected):
    assert keygen._trial_division(num) == expected


@pytest.mark.parametrize("n,expected", base_primetest_cases + large_primetest_cases, ids=id_generator)
def test_miller_rabin(n, expected):
    assert keygen._miller_rabin(n, 20) == expected


@pytest.mark.parametrize("n,expected", base_primetest_cases + large_primetest_cases, ids=id_generator)
def test_check_prime(n, expected):
    assert keygen.check_prime(n) == expected
    assert keygen.check_prime(n, certainty=100) == expected


@pytest.mark.parametrize("certainty,iters", [(100, 50), (1, 1), (7, 4), (0, 1)])
def test_check_prime_certainty(mocker, certainty, iters):
    spy = mocker.spy(keygen, "_miller_rabin")
    assert keygen.check_prime(2**127 - 1, certainty=certainty)
    spy.assert_called_once_with(2**127 - 1, iters)


def test_check_prime_iters_precedence(mocker):
    spy = mocker.spy(keygen, "_miller_rabin")
    keygen.check_prime(2**127 - 1, iters=3, certainty=100)
    spy.assert_called_once_with(2**127 - 1, 3)


@pytest.mark.parametrize("bits", [64, 256, 512])
def test_generate_rsa_prime_conditions(bits):
    rng = random.Random(bits)
    for _ in range(5):
        p = keygen.generate_rsa_prime(bits, 5, 3, rng)
        assert sympy.isprime(p)
        assert p.bit_length() <= bits
        assert p.bit_length() >= bits // 8
        assert p % 5 != 1
        assert p % 3 != 1


def test_generate_rsa_prime_default_rng():
    p = keygen.generate_rsa_prime(256, 5, 3)
    assert sympy.isprime(p)
    assert 32 <= p.bit_length() <= 256
    assert p % 5 != 1 and p % 3 != 1


def test_generate_keys_default_rng():
    pair = keygen.generate_keys(2000, 5, 3).unwrap()
    pub, priv = pair.public_key, pair.private_key
    assert pub.n.bit_length() == 2000
    assert priv.m.p * priv.m.q == pub.n
    assert priv.decrypt(pub.encrypt(42)) == 42
    assert pub.decrypt(priv.encrypt(42)) == 42


def test_generate_rsa_prime_skips_unsuitable(mocker):
    short = 7  # far below an eighth of 128 bits
    congruent = sympy.nextprime(2**126)
    while congruent % 5 != 1:
        congruent = sympy.nextprime(congruent)
    composite = 10007 * 10009 * (2**61 - 1)
    wanted = sympy.nextprime(2**126)
    while wanted % 5 == 1 or wanted % 7 == 1:
        wanted = sympy.nextprime(wanted)
    rng = mocker.Mock()
    rng.getrandbits.side_effect = [short, congruent, composite, wanted]
    assert keygen.generate_rsa_prime(128, 5, 7, rng) == wanted
    assert rng.getrandbits.call_count == 4
    rng.getrandbits.assert_called_with(128)


def test_generate_rsa_prime_congruent_to_signing_exponent(mocker):
    # 2**127 - 1 is 1 modulo 3, so it cannot be used with a signing exponent of 3.
    other = sympy.nextprime(2**126)
    while other % 5 == 1 or other % 3 == 1:
        other = sympy.nextprime(other)
    rng = mocker.Mock()
    rng.getrandbits.side_effect = [2**127 - 1, other]
    assert keygen.generate_rsa_prime(128, 5, 3, rng) == other


def test_generate_rsa_prime_exhausted(mocker):
    mocker.patch("rsakit.keygen.check_prime", return_value=False)
    with pytest.raises(keygen.PrimeSearchError) as info:
        keygen.generate_rsa_prime(16, 5, 3, random.Random(0))
    assert info.value.attempts == keygen.MAX_PRIME_ATTEMPTS_PER_BIT * 16
    assert keygen.check_prime.call_count <= info.value.attempts


def test_generate_rsa_prime_validates():
    with pytest.raises(ValueError):
        keygen.generate_rsa_prime(0, 5, 3)


@pytest.mark.parametrize("args,message", [
    ((2048, 5, 3, 2000, 1999), "Modulus bit length limits are not reasonable: 2000/1999"),
    ((2048, 5, 3, 999, 4096), "Modulus bit length limits are not reasonable: 999/4096"),
    ((2048, 5, 3, 2000, 20001), "Modulus bit length limits are not reasonable: 2000/20001"),
    ((500, 5, 3, 1000, 4096), "500 is an unreasonably short bit length for a modulus"),
    ((5000, 5, 3, 1000, 4096), "5000 is an unreasonably long bit length for a modulus"),
    ((2001, 5, 3, 2000, 4096), "2001 is an odd bit length for a modulus"),
    ((2048, 1, 3, 2000, 4096), "1 e_pub_encrypting is not in [3..99999]"),
    ((2048, 100001, 3, 2000, 4096), "100001 e_pub_encrypting is not in [3..99999]"),
    ((2048, 5, 2, 2000, 4096), "2 e_pub_signing is not in [3..99999]"),
    ((2048, 6, 3, 2000, 4096), "e_pub_encrypting is not odd"),
    ((2048, 5, 4, 2000, 4096), "e_pub_signing is not odd"),
    ((2048, 5, 5, 2000, 4096), "e_pub_encrypting cannot be the same value as e_pub_signing"),
    ((2048, 15, 9, 2000, 4096), "15 and 9 have one or more common factors"),
])
def test_generate_keys_validates(mocker, args, message):
    spy = mocker.spy(keygen, "generate_rsa_prime")
    res = keygen.generate_keys(*args)
    assert res.not_ok
    assert res.msg == message
    assert spy.call_count == 0


def test_generate_keys_retries(mocker):
    p = one_thousand_bit_prime(5, 3)
    q = one_thousand_bit_prime(5, 3)
    while q == p:
        q = one_thousand_bit_prime(5, 3)
    small = sympy.randprime(2**998, 2**999)
    mocker.patch("rsakit.keygen.generate_rsa_prime", side_effect=[p, p, small, small + 2, p, q])
    res = keygen.generate_keys(2000, 5, 3)
    assert res.ok
    pair = res.info
    assert isinstance(pair, RSAKeyPair)
    assert pair.private_key.m.p == p
    assert pair.private_key.m.q == q
    assert keygen.generate_rsa_prime.call_count == 6


def test_generate_keys_rejects_uninvertible_exponent(mocker):
    bad = sympy.randprime(3 * 2**998, 2**1000)
    while bad % 5 != 1:
        bad = sympy.randprime(3 * 2**998, 2**1000)
    p = one_thousand_bit_prime(5, 3)
    q = one_thousand_bit_prime(5, 3)
    while q == p:
        q = one_thousand_bit_prime(5, 3)
    mocker.patch("rsakit.keygen.generate_rsa_prime", side_effect=[bad, q, p, q])
    res = keygen.generate_keys(2000, 5, 3)
    assert res.ok
    assert res.info.private_key.m.p == p
    assert keygen.generate_rsa_prime.call_count == 4


def test_generate_keys_exhausted(mocker):
    p = one_thousand_bit_prime()
    mocker.patch("rsakit.keygen.generate_rsa_prime", return_value=p)
    res = keygen.generate_keys(2000, 5, 3)
    assert res.not_ok
    assert res.msg == f"Could not generate RSA keys after {keygen.MAX_KEY_GENERATION_ATTEMPTS} attempts"
    assert keygen.generate_rsa_prime.call_count == 2 * keygen.MAX_KEY_GENERATION_ATTEMPTS


def test_generate_keys_prime_search_exhausted(mocker):
    err = keygen.PrimeSearchError("Couldn't find a suitable RSA prime within 100000 attempts.", 100000)
    mocker.patch("rsakit.keygen.generate_rsa_prime", side_effect=err)
    res = keygen.generate_keys(2000, 5, 3)
    assert res.not_ok
    assert res.cause is err
    assert "100000 attempts" in res.msg


def test_generate_keys_functional(mocker):
    p = one_thousand_bit_prime(7, 11)
    q = one_thousand_bit_prime(7, 11)
    while q == p:
        q = one_thousand_bit_prime(7, 11)
    mocker.patch("rsakit.keygen.generate_rsa_prime", side_effect=[p, q])
    pair = keygen.generate_keys(2000, 7, 11).unwrap()
    pub, priv = pair.public_key, pair.private_key
    t = math.lcm(p - 1, q - 1)
    assert pub.n == p * q == priv.m.n
    assert (pub.e_encrypting, pub.e_signing) == (7, 11)
    assert priv.t == t
    assert priv.d_encrypting == pow(7, -1, t)
    assert priv.d_signing == pow(11, -1, t)
    assert priv.m.gf == pow(q, -1, p)


@pytest.mark.slow
def test_generate_keys_real():
    pair = keygen.generate_keys(2000, 5, 3, rng=random.Random(2000)).unwrap()
    pub, priv = pair.public_key, pair.private_key
    assert pub.n.bit_length() == 2000
    assert priv.m.p * priv.m.q == pub.n
    assert sympy.isprime(priv.m.p)
    assert sympy.isprime(priv.m.q)
    assert priv.d_encrypting * pub.e_encrypting % priv.t == 1
    assert priv.d_signing * pub.e_signing % priv.t == 1


@pytest.mark.extreme
@pytest.mark.parametrize("bits", [4096, 10000])
def test_generate_keys_large(bits):
    pair = keygen.generate_keys(bits, 65537, 3).unwrap()
    assert pair.public_key.n.bit_length() == bits
    assert pair.private_key.decrypt(pair.public_key.encrypt(42)) == 42
