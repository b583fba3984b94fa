"""RSA primitives with CRT acceleration, dual-exponent key generation and RSAES-OAEP padding.

Provides key-pair generation with separate encrypting and signing exponents, the four raw RSA transforms,
CRT-accelerated private-key arithmetic, RFC 3447 OAEP padding with MGF1, and a compact tagged-string key format.

Typical usage example:

    pair = generate_keys(2048, 5, 3).unwrap()
    c = encrypt_message(pair.public_key, b"Hi there!", "greeting").unwrap()
    r = decrypt_message(pair.private_key, c, "greeting").unwrap()
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsakit.keygen import check_prime
from rsakit.keygen import generate_keys
from rsakit.keygen import generate_rsa_prime
from rsakit.keygen import PrimeSearchError
from rsakit.modulus import CompositeModulus
from rsakit.modulus import pow_mod
from rsakit.oaep import mgf1
from rsakit.oaep import pad
from rsakit.oaep import unpad
from rsakit.outcome import Outcome
from rsakit.outcome import OutcomeError
from rsakit.rsa import decrypt_message
from rsakit.rsa import encrypt_message
from rsakit.rsa import random_plaintext
from rsakit.rsa import RSAKeyPair
from rsakit.rsa import RSAPrivateKey
from rsakit.rsa import RSAPublicKey

__version__ = "0.1.0"
__all__ = [
    "CompositeModulus",
    "Outcome",
    "OutcomeError",
    "PrimeSearchError",
    "RSAKeyPair",
    "RSAPrivateKey",
    "RSAPublicKey",
    "check_prime",
    "decrypt_message",
    "encrypt_message",
    "generate_keys",
    "generate_rsa_prime",
    "mgf1",
    "pad",
    "pow_mod",
    "random_plaintext",
    "unpad",
]
