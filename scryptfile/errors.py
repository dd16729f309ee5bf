"""Error codes for scrypt encryption and decryption, and their messages."""

from __future__ import annotations

import enum
import os
import sys

__all__ = ["ErrorCode", "ScryptError", "error_message", "print_error"]


class ErrorCode(enum.IntEnum):
    """Result codes of the encryption and decryption routines."""

    OK = 0          # success
    ELIMIT = 1      # could not determine the memory limit
    ECLOCK = 2      # could not read the clocks
    EKEY = 3        # error computing derived key
    ESALT = 4       # could not read salt
    EOPENSSL = 5    # error in the cipher backend
    ENOMEM = 6      # allocation failed
    EINVAL = 7      # data is not a valid scrypt-encrypted block
    EVERSION = 8    # unrecognized scrypt version number
    ETOOBIG = 9     # decrypting would take too much memory
    ETOOSLOW = 10   # decrypting would take too long
    EPASS = 11      # password is incorrect
    EWRFILE = 12    # error writing output file
    ERDFILE = 13    # error reading input file
    EPARAM = 14     # error in explicit parameters
    EBIGSLOW = 15   # both ETOOBIG and ETOOSLOW


_FIXED_MESSAGES = {
    ErrorCode.ELIMIT: "Error determining amount of available memory",
    ErrorCode.ECLOCK: "Error reading clocks",
    ErrorCode.EKEY: "Error computing derived key",
    ErrorCode.ESALT: "Error reading salt",
    ErrorCode.EOPENSSL: "OpenSSL error",
    ErrorCode.ENOMEM: "Error allocating memory",
    ErrorCode.EINVAL: "Input is not valid scrypt-encrypted block",
    ErrorCode.EVERSION: "Unrecognized scrypt format version",
    ErrorCode.ETOOBIG: "Decrypting file would require too much memory",
    ErrorCode.ETOOSLOW: "Decrypting file would take too much CPU time",
    ErrorCode.EBIGSLOW: (
        "Decrypting file would require too much memory and CPU time"
    ),
    ErrorCode.EPASS: "Passphrase is incorrect",
    ErrorCode.EPARAM: "Error in explicit parameters",
}

# Codes whose message is followed by the underlying system error, if known.
_WITH_DETAIL = frozenset({
    ErrorCode.ELIMIT,
    ErrorCode.ECLOCK,
    ErrorCode.EKEY,
    ErrorCode.ESALT,
    ErrorCode.EOPENSSL,
    ErrorCode.ENOMEM,
    ErrorCode.EWRFILE,
    ErrorCode.ERDFILE,
})

_UNKNOWN = "Programmer error: unrecognized scrypt error"


def _as_code(code: int) -> ErrorCode | int:
    try:
        return ErrorCode(code)
    except ValueError:
        return int(code)


def error_message(
    code: int,
    infilename: str | None = None,
    outfilename: str | None = None,
) -> str:
    """Return the message for error ``code``.

    ``infilename`` and ``outfilename`` name the files in read and write
    errors; None stands for standard input or output.
    """
    code = _as_code(code)
    if code == ErrorCode.OK:
        raise ValueError("ErrorCode.OK is not an error")
    if code == ErrorCode.EWRFILE:
        name = outfilename if outfilename is not None else "standard output"
        return f"Error writing file: {name}"
    if code == ErrorCode.ERDFILE:
        name = infilename if infilename is not None else "standard input"
        return f"Error reading file: {name}"
    return _FIXED_MESSAGES.get(code, _UNKNOWN)


class ScryptError(Exception):
    """An encryption or decryption failure carrying an ``ErrorCode``."""

    def __init__(self, code: int, detail: str | None = None) -> None:
        self.code = _as_code(code)
        self.detail = detail
        self.message = error_message(self.code)
        text = self.message if detail is None else f"{self.message}: {detail}"
        super().__init__(text)


def _program_name() -> str:
    if sys.argv and sys.argv[0]:
        return os.path.basename(sys.argv[0])
    return "scrypt"


def print_error(
    code: int | ScryptError,
    infilename: str | None = None,
    outfilename: str | None = None,
) -> None:
    """Write the message for ``code`` (or a ``ScryptError``) to stderr."""
    detail = None
    if isinstance(code, ScryptError):
        detail = code.detail
        code = code.code
    code = _as_code(code)
    line = error_message(code, infilename, outfilename)
    if detail and code in _WITH_DETAIL:
        line = f"{line}: {detail}"
    print(f"{_program_name()}: {line}", file=sys.stderr)