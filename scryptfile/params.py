"""Choosing and checking scrypt parameters against memory and CPU limits."""

from __future__ import annotations

import sys
from dataclasses import dataclass

import humanize

from scryptfile.cpuperf import cpuperf
from scryptfile.errors import ErrorCode, ScryptError
from scryptfile.memlimit import memtouse

__all__ = ["Params", "display_params", "pick_params", "check_params"]

# At least 2^15 salsa20/8 cores are always allowed.
_MIN_OPSLIMIT = 32768
_MAX_RP = 0x3FFFFFFF


@dataclass
class Params:
    """Resource limits and (optionally) explicit scrypt parameters.

    ``maxmem`` is the largest number of bytes to use (0 means no maximum),
    ``maxmemfrac`` the largest fraction of available memory, and
    ``maxtime`` the approximate CPU time budget in seconds.  ``log_n``,
    ``r`` and ``p`` are either all zero (choose them automatically) or all
    non-zero (use them as given).
    """

    maxmem: int = 0
    maxmemfrac: float = 0.5
    maxtime: float = 5.0
    log_n: int = 0
    r: int = 0
    p: int = 0

    @property
    def explicit(self) -> bool:
        """Whether explicit values for N, r and p are set."""
        return self.log_n != 0

    @property
    def n(self) -> int:
        """The work factor N = 2^log_n."""
        return 1 << self.log_n


def _human(size: int) -> str:
    return humanize.naturalsize(size, binary=True)


def display_params(log_n: int, r: int, p: int, memlimit: int, opps: float,
                   maxtime: float) -> None:
    """Describe the parameters and their cost on standard error."""
    n = 1 << log_n
    mem_minimum = 128 * r * n
    expected_seconds = (4 * n * r * p) / opps if opps > 0 else 0.0

    out = sys.stderr
    out.write(f"Parameters used: N = {n}; r = {r}; p = {p};\n")
    out.write("    Decrypting this file requires at least "
              f"{_human(mem_minimum)} of memory")
    if memlimit > 0:
        out.write(f" ({_human(memlimit)} available)")
    if opps > 0:
        out.write(f",\n    and will take approximately {expected_seconds:.1f} "
                  f"seconds (limit: {maxtime:.1f} seconds)")
    out.write(".\n")


def _smallest_log_n_above(half_max_n: float) -> int:
    """Return the least log_n in [1, 63] with 2^log_n > half_max_n."""
    for log_n in range(1, 63):
        if float(1 << log_n) > half_max_n:
            return log_n
    return 63


def _select_params(memlimit: int, opslimit: float) -> tuple[int, int, int]:
    """Choose (log_n, r, p) for the given memory and operation limits."""
    opslimit = max(opslimit, _MIN_OPSLIMIT)
    r = 8

    # 128Nr <= memlimit and 4Nrp <= opslimit; the smaller one binds N.
    if opslimit < memlimit / 32:
        p = 1
        max_n = opslimit / (r * 4)
        log_n = _smallest_log_n_above(max_n / 2)
    else:
        max_n = float(memlimit // (r * 128))
        log_n = _smallest_log_n_above(max_n / 2)
        maxrp = (opslimit / 4) / float(1 << log_n)
        maxrp = min(maxrp, _MAX_RP)
        p = int(maxrp) // r
    return log_n, r, p


def _limit_error(log_n: int, r: int, p: int, memlimit: int,
                 opslimit: float) -> ErrorCode | None:
    """Return the error code for exceeded limits, or None if within them."""
    n = 1 << log_n
    too_big = (memlimit // n) // r < 128
    too_slow = ((opslimit / float(n)) / r) / p < 4
    if too_big and too_slow:
        return ErrorCode.EBIGSLOW
    if too_big:
        return ErrorCode.ETOOBIG
    if too_slow:
        return ErrorCode.ETOOSLOW
    return None


def _memory_limit(maxmem: int, maxmemfrac: float) -> int:
    try:
        return memtouse(maxmem, maxmemfrac)
    except OSError as exc:
        raise ScryptError(ErrorCode.ELIMIT, exc.strerror or str(exc)) from exc


def _cpu_speed() -> float:
    try:
        return cpuperf()
    except OSError as exc:
        raise ScryptError(ErrorCode.ECLOCK, exc.strerror or str(exc)) from exc
    except (ValueError, MemoryError) as exc:
        raise ScryptError(ErrorCode.EKEY, str(exc)) from exc


def pick_params(maxmem: int, maxmemfrac: float, maxtime: float,
                verbose: bool = False) -> Params:
    """Choose the strongest N, r, p that fit the memory and time limits."""
    memlimit = _memory_limit(maxmem, maxmemfrac)
    opps = _cpu_speed()
    log_n, r, p = _select_params(memlimit, opps * maxtime)

    if verbose:
        display_params(log_n, r, p, memlimit, opps, maxtime)

    return Params(maxmem=maxmem, maxmemfrac=maxmemfrac, maxtime=maxtime,
                  log_n=log_n, r=r, p=p)


def check_params(maxmem: int, maxmemfrac: float, maxtime: float, log_n: int,
                 r: int, p: int, verbose: bool = False,
                 force: bool = False) -> None:
    """Validate N, r, p and, unless ``force``, check them against limits.

    Raises ScryptError with EINVAL for invalid values, and with ETOOBIG,
    ETOOSLOW or EBIGSLOW when the computation would exceed the limits.
    """
    if log_n < 1 or log_n > 63:
        raise ScryptError(ErrorCode.EINVAL)
    if r * p >= 0x40000000:
        raise ScryptError(ErrorCode.EINVAL)
    if r <= 0 or p <= 0:
        raise ScryptError(ErrorCode.EINVAL)

    if force:
        if verbose:
            display_params(log_n, r, p, 0, 0.0, maxtime)
        return

    memlimit = _memory_limit(maxmem, maxmemfrac)
    opps = _cpu_speed()
    opslimit = opps * maxtime

    if verbose:
        display_params(log_n, r, p, memlimit, opps, maxtime)

    code = _limit_error(log_n, r, p, memlimit, opslimit)
    if code is not None:
        raise ScryptError(code)