"""Shared argparse type validators for CLI parameter bounds checking.

These validators produce clear error messages when users pass invalid
values (e.g., ``--p-max 2.0``, ``--min-size -1``).  They are intended to
be used as the ``type=`` argument in ``add_argument()``.
"""

from __future__ import annotations

import argparse


def _non_negative_int(value: str) -> int:
    """argparse type for non-negative integers (>= 0)."""
    ivalue = int(value)
    if ivalue < 0:
        raise argparse.ArgumentTypeError(f"{value} is not a non-negative integer")
    return ivalue


def _unit_interval(value: str) -> float:
    """argparse type for values in the closed interval [0, 1]."""
    fvalue = float(value)
    if not (0 <= fvalue <= 1):
        raise argparse.ArgumentTypeError(
            f"{value} is not a valid fraction (must be in [0, 1])"
        )
    return fvalue
