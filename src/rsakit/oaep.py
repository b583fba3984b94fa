"""RSAES-OAEP padding (RFC 3447, section 7.1) and the MGF1 mask generation function (RFC 3447, appendix B.2.1).

The label is always NUL-terminated before hashing, so lHash = Hash(label || 0x00) and the empty label hashes a
single zero byte. Messages padded here therefore only unpad here (or with another OAEP implementation handed the
label bytes including the terminator).

Padded layout, k being the byte length of the modulus:

    EM = 0x00 || maskedSeed || maskedDB
    DB = lHash || PS || 0x01 || M

Typical usage example:

    res = pad(n, b"hi!", "test")
    unpad(res.info, "test").info  # b"hi!"
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import hashlib
import hmac
import logging
import secrets

from rsakit.bigints import RandomSource
from rsakit.bigints import byte_length
from rsakit.bigints import integer_to_bytes
from rsakit.outcome import Outcome
from rsakit.outcome import failure
from rsakit.outcome import success

logger = logging.getLogger(__name__)

DEFAULT_HASH = "sha256"

HASH_TLL = {
    "sha256": (hashlib.sha256, 32),
    "sha384": (hashlib.sha384, 48),
    "sha512": (hashlib.sha512, 64),
}

OPAQUE_ERROR = "Decryption error."


def xorbytes(a: bytes, b: bytes) -> bytes:
    """XOR bitwise for bytes.

    Requires two byte strings of equal length.

    Args:
        a: byte string
        b: byte string

    Returns:
        xor byte string
    """
    return bytes(x ^ y for x, y in zip(a, b, strict=True))


def mgf1(mgfseed: bytes, masklen: int, hashf: str = DEFAULT_HASH) -> bytes:
    """The PKCS#1 Mask Generation Function 1.

    Hashes the seed followed by a 4-byte big-endian counter, counting up from zero, until enough bytes have been
    produced, then truncates to `masklen`.

    Args:
        mgfseed: Seed for mask generation. Must not be empty.
        masklen: Intended length of mask
        hashf: Hash function (Implemented for sha256, sha384, sha512)

    Returns:
        The mask in form of bytes of length masklen.

    Raises:
        ValueError: If the seed is empty, the length negative or the mask too long for the hash function.
    """
    fun, hlen = HASH_TLL[hashf]
    if not mgfseed:
        raise ValueError("Mask seed must not be empty")
    if masklen < 0:
        raise ValueError(f"Mask length is negative: {masklen}")
    if masklen > 2**32 * hlen:
        raise ValueError("Mask too long for the specified hash function")
    t = b""
    cnt = 0
    while len(t) < masklen:
        t += fun(mgfseed + integer_to_bytes(cnt, 4)).digest()
        cnt += 1
    return t[:masklen]


def _label_hash(label: str | None, hashf: str) -> bytes:
    fun, _ = HASH_TLL[hashf]
    return fun(((label or "") + "\0").encode("utf-8")).digest()


def pad(modulus: int,
        message: bytes,
        label: str | None = None,
        rng: RandomSource | None = None,
        hashf: str = DEFAULT_HASH) -> Outcome:
    """Pads the message to the byte length of `modulus` with RSAES-OAEP.

    Args:
        modulus: The modulus n of the key that will encrypt the result.
        message: The message; between 1 and k - 2 * hLen - 2 bytes.
        label: Optional label. Only its hash ends up in the padding.
        rng: Source of randomness. Defaults to `secrets.SystemRandom()`.
        hashf: Hash function (Implemented for sha256, sha384, sha512)

    Returns:
        An ok outcome with exactly k padded bytes, or a not-ok outcome if the message does not fit.

    Raises:
        ValueError: If the modulus is not positive.
    """
    if modulus < 1:
        raise ValueError("Modulus must be positive")
    _, hlen = HASH_TLL[hashf]
    k = byte_length(modulus)
    ps_len = k - len(message) - 2 * hlen - 2
    if ps_len < 0:
        return failure("Message is too long")
    if not message:
        # unpad rejects an empty message, so refuse to produce one.
        return failure("Message is empty")
    rng = rng or secrets.SystemRandom()
    db = _label_hash(label, hashf) + b"\x00" * ps_len + b"\x01" + message
    seed = rng.randbytes(hlen)
    mdb = xorbytes(db, mgf1(seed, len(db), hashf))
    mseed = xorbytes(seed, mgf1(mdb, hlen, hashf))
    return success(b"\x00" + mseed + mdb)


def unpad(padded: bytes, label: str | None = None, hashf: str = DEFAULT_HASH, opaque: bool = False) -> Outcome:
    """Strips RSAES-OAEP padding, verifying the layout and the label.

    The checks run in a fixed order: input length, the scan of DB for the 0x01 marker, the leading byte, then the
    label hash. By default each failure has its own message. That tells an attacker with a decryption oracle which
    check failed; with `opaque` every check runs over the whole block and all failures read "Decryption error.".

    Args:
        padded: The padded message, k bytes.
        label: The label used when padding.
        hashf: Hash function used when padding.
        opaque: Report every failure with the same message.

    Returns:
        An ok outcome with the original message, or a not-ok outcome.
    """
    _, hlen = HASH_TLL[hashf]
    if len(padded) - hlen - 1 <= hlen + 1:
        return failure(OPAQUE_ERROR if opaque else "Padded message is impossibly short")
    mseed = padded[1:hlen + 1]
    mdb = padded[hlen + 1:]
    seed = xorbytes(mseed, mgf1(mdb, hlen, hashf))
    db = xorbytes(mdb, mgf1(seed, len(mdb), hashf))
    if opaque:
        return _unpad_opaque(padded, db, label, hashf, hlen)
    msg_idx = 0
    for i in range(hlen, len(db)):
        if db[i] == 1:
            msg_idx = i + 1
            if msg_idx == len(db):
                logger.debug("OAEP unpad failed: empty message")
                return failure("Unpadded message in data block is zero bytes long")
            break
        if db[i] != 0:
            logger.debug("OAEP unpad failed: malformed data block")
            return failure("Data block in padded message is malformed")
    if msg_idx == 0:
        logger.debug("OAEP unpad failed: no message marker")
        return failure("Unpadded message in data block not found")
    if padded[0] != 0:
        logger.debug("OAEP unpad failed: leading byte")
        return failure("Malformed padded message: initial byte of message is not zero")
    if db[:hlen] != _label_hash(label, hashf):
        logger.debug("OAEP unpad failed: label hash")
        return failure("Label hash mismatch")
    return success(db[msg_idx:])


def _unpad_opaque(padded: bytes, db: bytes, label: str | None, hashf: str, hlen: int) -> Outcome:
    valid = padded[0] == 0
    valid &= hmac.compare_digest(db[:hlen], _label_hash(label, hashf))
    mrkr = None
    for by in range(hlen, len(db)):
        if db[by] == 1 and mrkr is None:
            mrkr = by
        if db[by] != 0 and mrkr is None:
            valid = False
    if mrkr is None or mrkr + 1 == len(db) or not valid:
        logger.debug("OAEP unpad failed")
        return failure(OPAQUE_ERROR)
    return success(db[mrkr + 1:])
