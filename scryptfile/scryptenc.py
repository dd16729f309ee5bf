"""Encrypting and decrypting data with a key derived by scrypt."""

from __future__ import annotations

import hmac
import os
import sys
from typing import BinaryIO

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from scryptfile.errors import ErrorCode, ScryptError
from scryptfile.kdf import scrypt
from scryptfile.params import Params, check_params, display_params, pick_params
from scryptfile.sha256 import HmacSha256, sha256

__all__ = [
    "PreparedDecryption",
    "encrypt_buf",
    "decrypt_buf",
    "encrypt_file",
    "prepare_decrypt",
    "decrypt_file",
    "print_file_params",
]

ENCBLOCK = 65536
HEADER_SIZE = 96
MAC_SIZE = 32
MAGIC = b"scrypt"


def _warn(message: str) -> None:
    name = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "scrypt"
    print(f"{name}: {message}", file=sys.stderr)


def _as_bytes(passwd: bytes | str) -> bytes:
    return passwd.encode("utf-8") if isinstance(passwd, str) else bytes(passwd)


def _keystream_cipher(key: bytes):
    """Return an AES-256-CTR transformer whose counter starts at zero."""
    return Cipher(algorithms.AES(key), modes.CTR(bytes(16))).encryptor()


def _require_zero_params(params: Params) -> None:
    if params.log_n != 0 or params.r != 0 or params.p != 0:
        raise ValueError("explicit parameters must be zero for decryption")


def _require_consistent_params(params: Params) -> None:
    values = (params.log_n, params.r, params.p)
    if any(values) and not all(values):
        raise ValueError("explicit parameters must be all zero or all non-zero")


def _derive(passwd: bytes, salt: bytes, log_n: int, r: int, p: int) -> bytearray:
    try:
        return bytearray(scrypt(passwd, salt, 1 << log_n, r, p, 64))
    except (ValueError, MemoryError) as exc:
        raise ScryptError(ErrorCode.EKEY, str(exc)) from exc


def _zero(buf: bytearray) -> None:
    buf[:] = bytes(len(buf))


def _encrypt_setup(passwd: bytes, params: Params, verbose: bool,
                   force: bool) -> tuple[bytes, bytearray]:
    """Choose or check parameters; return the header and derived key."""
    if params.log_n != 0:
        try:
            check_params(params.maxmem, params.maxmemfrac, params.maxtime,
                         params.log_n, params.r, params.p, verbose, force)
        except ScryptError as exc:
            code = exc.code
            if code in (ErrorCode.ETOOBIG, ErrorCode.EBIGSLOW):
                _warn("Warning: Explicit parameters might exceed memory limit")
            if code in (ErrorCode.ETOOSLOW, ErrorCode.EBIGSLOW):
                _warn("Warning: Explicit parameters might exceed time limit")
            if code == ErrorCode.EINVAL:
                raise ScryptError(ErrorCode.EPARAM) from exc
            if code not in (ErrorCode.ETOOBIG, ErrorCode.ETOOSLOW,
                            ErrorCode.EBIGSLOW):
                raise
    else:
        chosen = pick_params(params.maxmem, params.maxmemfrac, params.maxtime,
                             verbose)
        params.log_n, params.r, params.p = chosen.log_n, chosen.r, chosen.p

    if not 0 < params.log_n < 64:
        raise ScryptError(ErrorCode.EPARAM)

    try:
        salt = os.urandom(32)
    except OSError as exc:
        raise ScryptError(ErrorCode.ESALT, exc.strerror or str(exc)) from exc

    dk = _derive(passwd, salt, params.log_n, params.r, params.p)

    header = (MAGIC + b"\x00" + bytes([params.log_n & 0xFF])
              + params.r.to_bytes(4, "big") + params.p.to_bytes(4, "big")
              + salt)
    header += sha256(header)[:16]
    header += HmacSha256(bytes(dk[32:])).update(header).digest()
    return header, dk


def _decrypt_setup(header: bytes, passwd: bytes, params: Params,
                   verbose: bool, force: bool) -> bytearray:
    """Parse and verify a header; return the derived key."""
    params.log_n = header[7]
    params.r = int.from_bytes(header[8:12], "big")
    params.p = int.from_bytes(header[12:16], "big")
    salt = header[16:48]

    if not hmac.compare_digest(header[48:64], sha256(header[:48])[:16]):
        raise ScryptError(ErrorCode.EINVAL)

    check_params(params.maxmem, params.maxmemfrac, params.maxtime,
                 params.log_n, params.r, params.p, verbose, force)

    dk = _derive(passwd, salt, params.log_n, params.r, params.p)
    signature = HmacSha256(bytes(dk[32:])).update(header[:64]).digest()
    if not hmac.compare_digest(signature, header[64:96]):
        _zero(dk)
        raise ScryptError(ErrorCode.EPASS)
    return dk


def encrypt_buf(data: bytes, passwd: bytes | str, params: Params | None = None,
                verbose: bool = False, force: bool = False) -> bytes:
    """Encrypt ``data``, returning ``len(data) + 128`` bytes.

    ``params`` holds the resource limits and either zero or explicit
    values for log_n, r and p; the values used are stored back into it.
    With explicit values that exceed the limits a warning is printed
    instead of raising.  With ``force`` the limits are not checked.
    """
    params = params if params is not None else Params()
    _require_consistent_params(params)
    header, dk = _encrypt_setup(_as_bytes(passwd), params, verbose, force)
    try:
        body = _keystream_cipher(bytes(dk[:32])).update(bytes(data))
        out = header + body
        return out + HmacSha256(bytes(dk[32:])).update(out).digest()
    finally:
        _zero(dk)


def decrypt_buf(data: bytes, passwd: bytes | str, params: Params | None = None,
                verbose: bool = False, force: bool = False) -> bytes:
    """Decrypt an scrypt-encrypted block and return the plaintext.

    The explicit values in ``params`` must be zero; the values found in
    the header are stored back into it.  With ``force`` the memory and
    time limits are not checked.
    """
    params = params if params is not None else Params()
    _require_zero_params(params)
    data = bytes(data)

    if len(data) < 7 or data[:6] != MAGIC:
        raise ScryptError(ErrorCode.EINVAL)
    if data[6] != 0:
        raise ScryptError(ErrorCode.EVERSION)
    if len(data) < HEADER_SIZE + MAC_SIZE:
        raise ScryptError(ErrorCode.EINVAL)

    dk = _decrypt_setup(data[:HEADER_SIZE], _as_bytes(passwd), params,
                        verbose, force)
    try:
        plain = _keystream_cipher(bytes(dk[:32])).update(
            data[HEADER_SIZE:-MAC_SIZE])
        signature = HmacSha256(bytes(dk[32:])).update(data[:-MAC_SIZE]).digest()
        if not hmac.compare_digest(signature, data[-MAC_SIZE:]):
            raise ScryptError(ErrorCode.EINVAL)
        return plain
    finally:
        _zero(dk)


def _read(infile: BinaryIO, size: int) -> bytes:
    try:
        return infile.read(size)
    except OSError as exc:
        raise ScryptError(ErrorCode.ERDFILE, exc.strerror or str(exc)) from exc


def _write(outfile: BinaryIO, data: bytes) -> None:
    try:
        outfile.write(data)
    except OSError as exc:
        raise ScryptError(ErrorCode.EWRFILE, exc.strerror or str(exc)) from exc


def _read_exact(infile: BinaryIO, size: int) -> bytes:
    """Read ``size`` bytes, or fewer only at end of file."""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = _read(infile, remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _iter_chunks(infile: BinaryIO, size: int):
    while True:
        chunk = _read(infile, size)
        if not chunk:
            return
        yield chunk


def encrypt_file(infile: BinaryIO, outfile: BinaryIO, passwd: bytes | str,
                 params: Params | None = None, verbose: bool = False,
                 force: bool = False) -> None:
    """Encrypt the stream ``infile`` and write the result to ``outfile``.

    Parameters behave as for ``encrypt_buf``.
    """
    params = params if params is not None else Params()
    _require_consistent_params(params)
    header, dk = _encrypt_setup(_as_bytes(passwd), params, verbose, force)
    try:
        mac = HmacSha256(bytes(dk[32:])).update(header)
        _write(outfile, header)
        cipher = _keystream_cipher(bytes(dk[:32]))
        for chunk in _iter_chunks(infile, ENCBLOCK):
            encrypted = cipher.update(chunk)
            mac.update(encrypted)
            _write(outfile, encrypted)
        _write(outfile, mac.digest())
    finally:
        _zero(dk)


def _load_header(infile: BinaryIO) -> bytes:
    """Read the 96-byte header and check its magic and version."""
    start = _read_exact(infile, 7)
    if len(start) < 7 or start[:6] != MAGIC:
        raise ScryptError(ErrorCode.EINVAL)
    if start[6] != 0:
        raise ScryptError(ErrorCode.EVERSION)
    rest = _read_exact(infile, HEADER_SIZE - 7)
    if len(rest) < HEADER_SIZE - 7:
        raise ScryptError(ErrorCode.EINVAL)
    return start + rest


class PreparedDecryption:
    """A decryption whose header and passphrase have been verified.

    ``infile`` must not be touched until ``copy_to`` has finished.
    Use as a context manager, or call ``close``, to wipe the key.
    """

    def __init__(self, infile: BinaryIO, header: bytes, dk: bytearray) -> None:
        self.infile = infile
        self.header = header
        self._dk = dk

    def copy_to(self, outfile: BinaryIO) -> None:
        """Decrypt the rest of the input into ``outfile`` and verify its MAC."""
        if not any(self._dk):
            raise ValueError("decryption key has already been wiped")
        mac = HmacSha256(bytes(self._dk[32:])).update(self.header)
        cipher = _keystream_cipher(bytes(self._dk[:32]))

        # The data length is unknown, so the final 32 bytes are held back
        # until end of file and then checked as the signature.
        pending = b""
        while True:
            chunk = _read(self.infile, ENCBLOCK + MAC_SIZE - len(pending))
            if not chunk:
                break
            pending += chunk
            if len(pending) <= MAC_SIZE:
                continue
            body = pending[:-MAC_SIZE]
            mac.update(body)
            _write(outfile, cipher.update(body))
            pending = pending[-MAC_SIZE:]

        if len(pending) < MAC_SIZE:
            raise ScryptError(ErrorCode.EINVAL)
        if not hmac.compare_digest(mac.digest(), pending):
            raise ScryptError(ErrorCode.EINVAL)

    def close(self) -> None:
        """Wipe the derived key."""
        _zero(self._dk)

    def __enter__(self) -> "PreparedDecryption":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def prepare_decrypt(infile: BinaryIO, passwd: bytes | str,
                    params: Params | None = None, verbose: bool = False,
                    force: bool = False) -> PreparedDecryption:
    """Read the header of ``infile`` and check the passphrase against it."""
    params = params if params is not None else Params()
    _require_zero_params(params)
    header = _load_header(infile)
    dk = _decrypt_setup(header, _as_bytes(passwd), params, verbose, force)
    return PreparedDecryption(infile, header, dk)


def decrypt_file(infile: BinaryIO, outfile: BinaryIO, passwd: bytes | str,
                 params: Params | None = None, verbose: bool = False,
                 force: bool = False) -> None:
    """Decrypt the stream ``infile`` and write the plaintext to ``outfile``."""
    with prepare_decrypt(infile, passwd, params, verbose, force) as prepared:
        prepared.copy_to(outfile)


def print_file_params(infile: BinaryIO) -> Params:
    """Print the N, r, p used for the encrypted ``infile`` and return them."""
    header = _load_header(infile)
    log_n = header[7]
    r = int.from_bytes(header[8:12], "big")
    p = int.from_bytes(header[12:16], "big")
    display_params(log_n, r, p, 0, 0.0, 0.0)
    return Params(log_n=log_n, r=r, p=p)