"""The scrypt key derivation function and its building blocks."""

from __future__ import annotations

import hashlib
import struct
import sys

from scryptfile.sha256 import pbkdf2_sha256

__all__ = ["salsa20_8", "blockmix_salsa8", "smix", "scrypt"]

_M = 0xFFFFFFFF
_SIZE_MAX = sys.maxsize * 2 + 1
_UINT32_MAX = 0xFFFFFFFF
_INT_MAX = 2**31 - 1
_MAX_BUFLEN = (2**32 - 1) * 32


def _to_words(data: bytes) -> list[int]:
    return list(struct.unpack(f"<{len(data) // 4}I", data))


def _to_bytes(words: list[int]) -> bytes:
    return struct.pack(f"<{len(words)}I", *words)


def _salsa_core(b: list[int]) -> list[int]:
    """Salsa20/8 core on sixteen 32-bit words."""
    x0, x1, x2, x3, x4, x5, x6, x7, x8, x9, x10, x11, x12, x13, x14, x15 = b
    for _ in range(4):
        # Columns.
        t = (x0 + x12) & _M; x4 ^= ((t << 7) | (t >> 25)) & _M
        t = (x4 + x0) & _M; x8 ^= ((t << 9) | (t >> 23)) & _M
        t = (x8 + x4) & _M; x12 ^= ((t << 13) | (t >> 19)) & _M
        t = (x12 + x8) & _M; x0 ^= ((t << 18) | (t >> 14)) & _M

        t = (x5 + x1) & _M; x9 ^= ((t << 7) | (t >> 25)) & _M
        t = (x9 + x5) & _M; x13 ^= ((t << 9) | (t >> 23)) & _M
        t = (x13 + x9) & _M; x1 ^= ((t << 13) | (t >> 19)) & _M
        t = (x1 + x13) & _M; x5 ^= ((t << 18) | (t >> 14)) & _M

        t = (x10 + x6) & _M; x14 ^= ((t << 7) | (t >> 25)) & _M
        t = (x14 + x10) & _M; x2 ^= ((t << 9) | (t >> 23)) & _M
        t = (x2 + x14) & _M; x6 ^= ((t << 13) | (t >> 19)) & _M
        t = (x6 + x2) & _M; x10 ^= ((t << 18) | (t >> 14)) & _M

        t = (x15 + x11) & _M; x3 ^= ((t << 7) | (t >> 25)) & _M
        t = (x3 + x15) & _M; x7 ^= ((t << 9) | (t >> 23)) & _M
        t = (x7 + x3) & _M; x11 ^= ((t << 13) | (t >> 19)) & _M
        t = (x11 + x7) & _M; x15 ^= ((t << 18) | (t >> 14)) & _M

        # Rows.
        t = (x0 + x3) & _M; x1 ^= ((t << 7) | (t >> 25)) & _M
        t = (x1 + x0) & _M; x2 ^= ((t << 9) | (t >> 23)) & _M
        t = (x2 + x1) & _M; x3 ^= ((t << 13) | (t >> 19)) & _M
        t = (x3 + x2) & _M; x0 ^= ((t << 18) | (t >> 14)) & _M

        t = (x5 + x4) & _M; x6 ^= ((t << 7) | (t >> 25)) & _M
        t = (x6 + x5) & _M; x7 ^= ((t << 9) | (t >> 23)) & _M
        t = (x7 + x6) & _M; x4 ^= ((t << 13) | (t >> 19)) & _M
        t = (x4 + x7) & _M; x5 ^= ((t << 18) | (t >> 14)) & _M

        t = (x10 + x9) & _M; x11 ^= ((t << 7) | (t >> 25)) & _M
        t = (x11 + x10) & _M; x8 ^= ((t << 9) | (t >> 23)) & _M
        t = (x8 + x11) & _M; x9 ^= ((t << 13) | (t >> 19)) & _M
        t = (x9 + x8) & _M; x10 ^= ((t << 18) | (t >> 14)) & _M

        t = (x15 + x14) & _M; x12 ^= ((t << 7) | (t >> 25)) & _M
        t = (x12 + x15) & _M; x13 ^= ((t << 9) | (t >> 23)) & _M
        t = (x13 + x12) & _M; x14 ^= ((t << 13) | (t >> 19)) & _M
        t = (x14 + x13) & _M; x15 ^= ((t << 18) | (t >> 14)) & _M

    mixed = (x0, x1, x2, x3, x4, x5, x6, x7, x8, x9, x10, x11, x12, x13, x14, x15)
    return [(a + c) & _M for a, c in zip(b, mixed)]


def _blockmix_words(block: list[int], r: int) -> list[int]:
    x = block[-16:]
    even: list[int] = []
    odd: list[int] = []
    for i, start in enumerate(range(0, 32 * r, 16)):
        x = _salsa_core([a ^ c for a, c in zip(x, block[start:start + 16])])
        (odd if i % 2 else even).extend(x)
    return even + odd


def _smix_words(x: list[int], r: int, n: int) -> list[int]:
    v: list[list[int]] = []
    for _ in range(n):
        v.append(x)
        x = _blockmix_words(x, r)
    last = 32 * r - 16
    mask = n - 1
    for _ in range(n):
        j = (x[last] | (x[last + 1] << 32)) & mask
        x = _blockmix_words([a ^ c for a, c in zip(x, v[j])], r)
    return x


def _check_r(r: int) -> None:
    if r < 1:
        raise ValueError("r must be at least 1")


def _check_n(n: int) -> None:
    if n < 2 or n & (n - 1):
        raise ValueError("N must be a power of 2 greater than 1")


def _check_block(block: bytes, size: int) -> None:
    if len(block) != size:
        raise ValueError(f"block must be {size} bytes, got {len(block)}")


def salsa20_8(block: bytes) -> bytes:
    """Apply the Salsa20/8 core to a 64-byte block."""
    _check_block(block, 64)
    return _to_bytes(_salsa_core(_to_words(bytes(block))))


def blockmix_salsa8(block: bytes, r: int) -> bytes:
    """Return BlockMix_{salsa20/8, r} of a 128*r byte block."""
    _check_r(r)
    _check_block(block, 128 * r)
    return _to_bytes(_blockmix_words(_to_words(bytes(block)), r))


def smix(block: bytes, r: int, n: int) -> bytes:
    """Return SMix_r(block, n) of a 128*r byte block; n a power of 2 above 1."""
    _check_r(r)
    _check_n(n)
    _check_block(block, 128 * r)
    return _to_bytes(_smix_words(_to_words(bytes(block)), r, n))


def _fast_scrypt(passwd: bytes, salt: bytes, n: int, r: int, p: int,
                 buflen: int) -> bytes | None:
    func = getattr(hashlib, "scrypt", None)
    if func is None:
        return None
    maxmem = 128 * r * (n + p + 2) + 1024
    if maxmem > _INT_MAX or buflen > _INT_MAX:
        return None
    try:
        out = func(passwd, salt=salt, n=n, r=r, p=p, maxmem=maxmem,
                   dklen=max(buflen, 1))
    except ValueError:
        return None
    return out[:buflen]


def scrypt(passwd: bytes, salt: bytes, n: int, r: int, p: int,
           buflen: int) -> bytes:
    """Compute scrypt(passwd, salt, N, r, p, buflen).

    Requires 0 < r * p < 2^30, buflen <= (2^32 - 1) * 32 and N a power of
    2 greater than 1.  Raises ValueError for bad parameters and MemoryError
    when the working storage could not be addressed.
    """
    if buflen < 0 or buflen > _MAX_BUFLEN:
        raise ValueError("buflen must be between 0 and (2^32 - 1) * 32")
    if r < 1 or p < 1:
        raise ValueError("r and p must be positive")
    if r * p >= 1 << 30:
        raise ValueError("r * p must be less than 2^30")
    _check_n(n)
    if (r > _SIZE_MAX // 128 // p
            or (_SIZE_MAX // 256 <= _UINT32_MAX and r > _SIZE_MAX // 256)
            or n > _SIZE_MAX // 128 // r):
        raise MemoryError("scrypt parameters need more memory than addressable")

    passwd = bytes(passwd)
    salt = bytes(salt)

    fast = _fast_scrypt(passwd, salt, n, r, p, buflen)
    if fast is not None:
        return fast

    size = 128 * r
    b = pbkdf2_sha256(passwd, salt, 1, p * size)
    mixed = b"".join(
        _to_bytes(_smix_words(_to_words(b[start:start + size]), r, n))
        for start in range(0, len(b), size)
    )
    return pbkdf2_sha256(passwd, mixed, 1, buflen)