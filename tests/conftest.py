"""Shared key material for the test modules."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import math

from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

from rsakit.modulus import CompositeModulus
from rsakit.rsa import RSAKeyPair
from rsakit.rsa import RSAPrivateKey
from rsakit.rsa import RSAPublicKey


@pytest.fixture(scope="session")
def crypto_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def key_pair(crypto_key) -> RSAKeyPair:
    """An rsakit key pair sharing its modulus and encrypting exponent with `crypto_key`."""
    privs = crypto_key.private_numbers()
    p, q, e_enc = privs.p, privs.q, privs.public_numbers.e
    n = p * q
    t = math.lcm(p - 1, q - 1)
    e_sig = next(e for e in range(3, 1000, 2) if math.gcd(e, t) == 1)
    pub = RSAPublicKey(n, e_enc, e_sig)
    priv = RSAPrivateKey(CompositeModulus.of(n, p, q), t, pow(e_enc, -1, t), pow(e_sig, -1, t))
    return RSAKeyPair(pub, priv)
