"""Decide how much memory the key derivation may use."""

from __future__ import annotations

import errno
import os
import sys

try:
    import resource
except ImportError:  # pragma: no cover - platforms without resource limits
    resource = None

__all__ = ["memtouse"]

SIZE_MAX = sys.maxsize * 2 + 1
MIN_MEMORY = 1048576

# RLIMIT_DATA only matters where large allocations are not served by mmap.
_USE_RLIMIT_DATA = sys.platform.startswith("openbsd")


def _clamp(value: int) -> int:
    return SIZE_MAX if value > SIZE_MAX else value


def _rlimit_memlimit() -> int:
    """Return the least of the relevant soft resource limits."""
    if resource is None:
        return SIZE_MAX
    names = ["RLIMIT_AS"]
    if _USE_RLIMIT_DATA:
        names.append("RLIMIT_DATA")
    names.append("RLIMIT_RSS")

    infinity = getattr(resource, "RLIM_INFINITY", -1)
    limit = 2**64 - 1
    for name in names:
        which = getattr(resource, name, None)
        if which is None:
            continue
        soft, _hard = resource.getrlimit(which)
        if soft != infinity and 0 <= soft < limit:
            limit = soft
    return _clamp(limit)


def _sysconf_memlimit() -> int:
    """Return the physical memory size reported by sysconf."""
    sysconf = getattr(os, "sysconf", None)
    names = getattr(os, "sysconf_names", {})
    if sysconf is None or "SC_PHYS_PAGES" not in names:
        return SIZE_MAX
    page_name = "SC_PAGE_SIZE" if "SC_PAGE_SIZE" in names else "SC_PAGESIZE"
    try:
        pagesize = sysconf(page_name)
        physpages = sysconf("SC_PHYS_PAGES")
    except ValueError:
        return SIZE_MAX
    except OSError as exc:
        # Some systems define SC_PHYS_PAGES but reject it with EINVAL.
        if exc.errno == errno.EINVAL:
            return SIZE_MAX
        raise
    if pagesize == -1 or physpages == -1:
        return SIZE_MAX
    return _clamp(pagesize * physpages)


def memtouse(maxmem: int, maxmemfrac: float) -> int:
    """Return the number of bytes of RAM the computation should use.

    This is ``maxmemfrac`` of the available memory, but no more than
    ``maxmem`` (when it is above 0) and never less than 1 MiB.
    ``maxmemfrac`` must lie in (0, 1].  Raises OSError when the system
    limits cannot be read.
    """
    if not 0 < maxmemfrac <= 1.0:
        raise ValueError("maxmemfrac must be larger than 0 and at most 1.0")

    usermem = SIZE_MAX
    memsize = SIZE_MAX
    sysinfo = SIZE_MAX
    rlimit = _rlimit_memlimit()
    sysconf = _sysconf_memlimit()

    # Assume at least half of physical memory is available to userland.
    if sysconf != SIZE_MAX and usermem < sysconf // 2:
        usermem = sysconf // 2

    memlimit_min = min(SIZE_MAX, usermem, memsize, sysinfo, rlimit, sysconf)

    memavail = _clamp(int(maxmemfrac * float(memlimit_min)))

    if maxmem > 0 and memavail > maxmem:
        memavail = maxmem

    return max(memavail, MIN_MEMORY)