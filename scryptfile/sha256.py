"""SHA-256, HMAC-SHA256 and PBKDF2-HMAC-SHA256."""

from __future__ import annotations

import hashlib
import hmac

__all__ = ["HmacSha256", "sha256", "hmac_sha256", "pbkdf2_sha256"]

DIGEST_SIZE = 32
BLOCK_SIZE = 64

# PBKDF2 can produce at most (2^32 - 1) blocks of output.
MAX_DKLEN = DIGEST_SIZE * (2**32 - 1)


class HmacSha256:
    """Incremental HMAC-SHA256 computation."""

    __slots__ = ("_mac",)

    def __init__(self, key: bytes = b"") -> None:
        self._mac = hmac.new(bytes(key), digestmod=hashlib.sha256)

    def update(self, data: bytes) -> "HmacSha256":
        """Feed ``data`` into the MAC; returns self for chaining."""
        self._mac.update(data)
        return self

    def digest(self) -> bytes:
        """Return the 32-byte MAC of everything fed so far."""
        return self._mac.digest()

    def copy(self) -> "HmacSha256":
        """Return an independent copy of the current state."""
        clone = HmacSha256.__new__(HmacSha256)
        clone._mac = self._mac.copy()
        return clone


def sha256(data: bytes) -> bytes:
    """Return the SHA-256 digest of ``data``."""
    return hashlib.sha256(data).digest()


def hmac_sha256(key: bytes, data: bytes) -> bytes:
    """Return the HMAC-SHA256 of ``data`` under ``key``."""
    return hmac.new(bytes(key), data, hashlib.sha256).digest()


def pbkdf2_sha256(passwd: bytes, salt: bytes, c: int, dklen: int) -> bytes:
    """Derive ``dklen`` bytes with PBKDF2 using HMAC-SHA256 as the PRF.

    An iteration count below 1 behaves as a single iteration.
    """
    if dklen < 0:
        raise ValueError("derived key length must not be negative")
    if dklen > MAX_DKLEN:
        raise ValueError("derived key length exceeds 32 * (2^32 - 1) bytes")
    if dklen == 0:
        return b""
    return hashlib.pbkdf2_hmac("sha256", bytes(passwd), bytes(salt), max(c, 1), dklen)