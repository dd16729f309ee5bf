"""Estimate how many Salsa20/8 cores this machine runs per second."""

from __future__ import annotations

import time

from scryptfile.kdf import scrypt

__all__ = ["cpuperf"]


def cpuperf() -> float:
    """Return an estimate of Salsa20/8 core invocations per second."""
    resolution = time.get_clock_info("monotonic").resolution

    # Loop until the clock ticks.
    start = time.monotonic()
    while True:
        scrypt(b"", b"", 16, 1, 1, 0)
        if time.monotonic() - start > 0:
            break

    # Count how many cores run before the next tick.
    start = time.monotonic()
    cores = 0
    while True:
        scrypt(b"", b"", 128, 1, 1, 0)
        # N = 128, r = 1 invokes the salsa20/8 core 512 times.
        cores += 512
        elapsed = time.monotonic() - start
        if elapsed > resolution:
            break

    return cores / elapsed