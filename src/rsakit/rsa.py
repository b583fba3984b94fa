"""Provides core RSA functionalities: the key types, the raw RSA transforms and key (de)serialization.

Keys carry two exponent pairs. The encrypting pair is used to encrypt with the public key and decrypt with the private
key; the signing pair goes the other way round, encrypting (signing) with the private key and decrypting (verifying)
with the public key. Private-key operations run through the CRT arithmetic of `rsakit.modulus`.

Keys serialize to a compact tagged string of unpadded base64 integers:

    n:<n>;eE:<eEncrypting>;eS:<eSigning>;
    p:<p>;q:<q>;dE:<dEncrypting>;dS:<dSigning>;

Only the generating set of a private key is stored; n, t and Garner's factor are recomputed on parse.

Typical usage example:

    pair = generate_keys(2048).unwrap()
    c = pair.public_key.encrypt(42)
    r = pair.private_key.decrypt(c)
    res = encrypt_message(pair.public_key, b"Hi there!", "label")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import dataclasses
import logging
import pathlib
import re
import secrets

from rsakit import b64
from rsakit import oaep
from rsakit.bigints import RandomSource
from rsakit.bigints import byte_length
from rsakit.bigints import bytes_to_integer
from rsakit.bigints import integer_to_bytes
from rsakit.bigints import lcm
from rsakit.modulus import CompositeModulus
from rsakit.modulus import pow_mod
from rsakit.outcome import Outcome
from rsakit.outcome import failure
from rsakit.outcome import success

logger = logging.getLogger(__name__)

SHORTEST_RANDOM_PLAINTEXT_MODULUS: int = 2000

_PUBLIC_KEY = re.compile(r"n:([a-zA-Z0-9+/]+);eE:([a-zA-Z0-9+/]+);eS:([a-zA-Z0-9+/]+);")
_PRIVATE_KEY = re.compile(r"p:([a-zA-Z0-9+/]+);q:([a-zA-Z0-9+/]+);dE:([a-zA-Z0-9+/]+);dS:([a-zA-Z0-9+/]+);")


def _check_range(value: int, mod: int) -> None:
    if not 0 <= value < mod:
        raise ValueError("Message representative must be in range [0, mod-1]")


def _decode_fields(match: re.Match, names: tuple[str, ...]) -> tuple[list[int] | None, str | None, Exception | None]:
    """Decodes the base64 groups of a key string match, naming the first bad field."""
    values = []
    for name, group in zip(names, match.groups(), strict=True):
        try:
            values.append(b64.decode_int(group))
        except ValueError as exc:
            return None, f"Malformed base64 in field {name}: {exc}", exc
    return values, None, None


@dataclasses.dataclass(frozen=True)
class RSAPublicKey:
    """An RSA public key.

    Attributes:
        n: The modulus of the key pair.
        e_encrypting: The encrypting exponent.
        e_signing: The signature verification exponent.
    """
    n: int
    e_encrypting: int
    e_signing: int

    def __post_init__(self) -> None:
        if self.n < 1:
            raise ValueError("n is less than one")
        if self.e_encrypting < 1:
            raise ValueError("e_encrypting is less than one")
        if self.e_signing < 1:
            raise ValueError("e_signing is less than one")

    @property
    def bsize(self) -> int:
        """Byte length of the modulus."""
        return byte_length(self.n)

    def encrypt(self, plaintext: int) -> int:
        """Encrypts with the encrypting exponent.

        Args:
            plaintext: Integer in [0, n).

        Returns:
            The ciphertext, in [0, n).

        Raises:
            ValueError: If the plaintext is out of range for the current key.
        """
        _check_range(plaintext, self.n)
        return pow(plaintext, self.e_encrypting, self.n)

    def decrypt(self, signature: int) -> int:
        """Decrypts (verifies) with the signing exponent, undoing `RSAPrivateKey.encrypt`.

        Raises:
            ValueError: If the signature is out of range for the current key.
        """
        _check_range(signature, self.n)
        return pow(signature, self.e_signing, self.n)

    def encrypt_bytes(self, plaintext: bytes) -> bytes:
        """Byte-string version of `encrypt`; the result is always `bsize` bytes."""
        return integer_to_bytes(self.encrypt(bytes_to_integer(plaintext)), self.bsize)

    def decrypt_bytes(self, signature: bytes) -> bytes:
        """Byte-string version of `decrypt`; the result is always `bsize` bytes."""
        return integer_to_bytes(self.decrypt(bytes_to_integer(signature)), self.bsize)

    def to_string(self) -> str:
        """Returns the tagged string form, `n:...;eE:...;eS:...;`."""
        return (f"n:{b64.encode_int(self.n)};"
                f"eE:{b64.encode_int(self.e_encrypting)};"
                f"eS:{b64.encode_int(self.e_signing)};")

    @classmethod
    def from_string(cls, text: str) -> Outcome:
        """Parses the tagged string form of a public key.

        Args:
            text: The string, as produced by `to_string`.

        Returns:
            An ok outcome with the key, or a not-ok outcome describing the malformed input.

        Raises:
            ValueError: If `text` is empty.
        """
        if not text:
            raise ValueError("Key string is empty")
        match = _PUBLIC_KEY.fullmatch(text)
        if match is None:
            logger.debug("Rejected public key string of length %d", len(text))
            return failure(f"Not a public RSA key: {text}")
        values, problem, exc = _decode_fields(match, ("n", "eE", "eS"))
        if values is None:
            return failure(problem, exc)
        try:
            return success(cls(*values))
        except ValueError as err:
            return failure(f"Not a valid public RSA key: {err}", err)

    def export(self, file: pathlib.Path) -> None:
        """Writes the tagged string form to `file`."""
        with open(file, "w", encoding="ascii") as f:
            f.write(self.to_string() + "\n")

    @classmethod
    def import_key(cls, file: pathlib.Path) -> Outcome:
        """Reads a key written by `export`."""
        with open(file, "r", encoding="ascii") as f:
            return cls.from_string(f.read().strip())


@dataclasses.dataclass(frozen=True)
class RSAPrivateKey:
    """An RSA private key.

    Attributes:
        m: The composite modulus with its factorization.
        t: lcm(p - 1, q - 1), the modulus the exponents are inverted under.
        d_encrypting: The decrypting exponent, the inverse of the public encrypting exponent modulo t.
        d_signing: The signing exponent, the inverse of the public signing exponent modulo t.
    """
    m: CompositeModulus
    t: int
    d_encrypting: int
    d_signing: int

    def __post_init__(self) -> None:
        if self.t < 1:
            raise ValueError("t is less than one")
        if self.d_encrypting < 1:
            raise ValueError("d_encrypting is less than one")
        if self.d_signing < 1:
            raise ValueError("d_signing is less than one")

    @property
    def n(self) -> int:
        return self.m.n

    @property
    def bsize(self) -> int:
        """Byte length of the modulus."""
        return byte_length(self.m.n)

    def decrypt(self, ciphertext: int) -> int:
        """Decrypts with the decrypting exponent, accelerated with CRT.

        Args:
            ciphertext: Integer in [0, n).

        Returns:
            The plaintext, in [0, n).

        Raises:
            ValueError: If the ciphertext is out of range for the current key.
        """
        _check_range(ciphertext, self.m.n)
        return pow_mod(self.m, ciphertext, self.d_encrypting)

    def encrypt(self, plaintext: int) -> int:
        """Encrypts (signs) with the signing exponent, accelerated with CRT.

        Raises:
            ValueError: If the plaintext is out of range for the current key.
        """
        _check_range(plaintext, self.m.n)
        return pow_mod(self.m, plaintext, self.d_signing)

    def decrypt_bytes(self, ciphertext: bytes) -> bytes:
        """Byte-string version of `decrypt`; the result is always `bsize` bytes."""
        return integer_to_bytes(self.decrypt(bytes_to_integer(ciphertext)), self.bsize)

    def encrypt_bytes(self, plaintext: bytes) -> bytes:
        """Byte-string version of `encrypt`; the result is always `bsize` bytes."""
        return integer_to_bytes(self.encrypt(bytes_to_integer(plaintext)), self.bsize)

    def to_string(self) -> str:
        """Returns the tagged string form, `p:...;q:...;dE:...;dS:...;`.

        Only the values needed to recompute the rest of the key are included.
        """
        return (f"p:{b64.encode_int(self.m.p)};"
                f"q:{b64.encode_int(self.m.q)};"
                f"dE:{b64.encode_int(self.d_encrypting)};"
                f"dS:{b64.encode_int(self.d_signing)};")

    @classmethod
    def from_string(cls, text: str) -> Outcome:
        """Parses the tagged string form of a private key, recomputing n, t and Garner's factor.

        Args:
            text: The string, as produced by `to_string`.

        Returns:
            An ok outcome with the key, or a not-ok outcome describing the malformed input.

        Raises:
            ValueError: If `text` is empty.
        """
        if not text:
            raise ValueError("Key string is empty")
        match = _PRIVATE_KEY.fullmatch(text)
        if match is None:
            logger.debug("Rejected private key string of length %d", len(text))
            return failure("Not a private RSA key")
        values, problem, exc = _decode_fields(match, ("p", "q", "dE", "dS"))
        if values is None:
            return failure(problem, exc)
        p, q, d_enc, d_sig = values
        try:
            mod = CompositeModulus.of(p * q, p, q)
            return success(cls(mod, lcm(p - 1, q - 1), d_enc, d_sig))
        except ValueError as err:
            return failure(f"Not a valid private RSA key: {err}", err)

    def export(self, file: pathlib.Path) -> None:
        """Writes the tagged string form to `file`."""
        with open(file, "w", encoding="ascii") as f:
            f.write(self.to_string() + "\n")

    @classmethod
    def import_key(cls, file: pathlib.Path) -> Outcome:
        """Reads a key written by `export`."""
        with open(file, "r", encoding="ascii") as f:
            return cls.from_string(f.read().strip())


@dataclasses.dataclass(frozen=True)
class RSAKeyPair:
    """A complementary pair of RSA keys."""
    public_key: RSAPublicKey
    private_key: RSAPrivateKey

    def __post_init__(self) -> None:
        if self.public_key.n != self.private_key.m.n:
            raise ValueError("Public and private keys have different moduli")


def random_plaintext(key: RSAPublicKey | RSAPrivateKey, rng: RandomSource | None = None) -> int:
    """Returns an integer uniformly distributed over [0, n), usable as a plaintext for `key`.

    Args:
        key: Either key of the pair; only its modulus is used.
        rng: Source of randomness. Defaults to `secrets.SystemRandom()`.

    Raises:
        ValueError: If the modulus is shorter than `SHORTEST_RANDOM_PLAINTEXT_MODULUS` bits.
    """
    n = key.n
    if n.bit_length() < SHORTEST_RANDOM_PLAINTEXT_MODULUS:
        raise ValueError(f"Modulus is unreasonably small ({n.bit_length()} bits)")
    rng = rng or secrets.SystemRandom()
    while True:
        res = rng.getrandbits(n.bit_length())
        if res < n:
            return res


def encrypt_message(key: RSAPublicKey,
                    message: bytes,
                    label: str | None = None,
                    rng: RandomSource | None = None,
                    hashf: str = oaep.DEFAULT_HASH) -> Outcome:
    """Pads the message with RSAES-OAEP and encrypts it with the public key.

    Args:
        key: The recipient's public key.
        message: The message; at most `bsize - 2 * hLen - 2` bytes.
        label: Optional label, checked again on decryption.
        rng: Source of randomness for the OAEP seed.
        hashf: Hash function (Implemented for sha256, sha384, sha512)

    Returns:
        An ok outcome with the `bsize`-byte ciphertext, or the padding failure.
    """
    padded = oaep.pad(key.n, message, label, rng, hashf)
    if padded.not_ok:
        return padded
    return success(key.encrypt_bytes(padded.info))


def decrypt_message(key: RSAPrivateKey,
                    ciphertext: bytes,
                    label: str | None = None,
                    hashf: str = oaep.DEFAULT_HASH,
                    opaque: bool = False) -> Outcome:
    """Decrypts a ciphertext produced by `encrypt_message` and strips the OAEP padding.

    Args:
        key: The private key.
        ciphertext: Exactly `bsize` bytes.
        label: The label the message was padded with.
        hashf: Hash function used when padding.
        opaque: Collapse every unpadding failure into one indistinguishable message.

    Returns:
        An ok outcome with the original message, or a not-ok outcome.
    """
    if len(ciphertext) != key.bsize:
        return failure("Ciphertext does not match expected length.")
    value = bytes_to_integer(ciphertext)
    if value >= key.n:
        return failure("Ciphertext representative out of range.")
    return oaep.unpad(key.decrypt_bytes(ciphertext), label, hashf, opaque)
