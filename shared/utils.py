"""
utils.py – small generic helpers reused in multiple packages
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any

import pandas as pd

PIP_CACHE: dict[str, float] = {}


def pip_size(pair: str) -> float:
    """0.01 for JPY pairs, else 0.0001."""
    if pair not in PIP_CACHE:
        PIP_CACHE[pair] = 0.01 if pair.endswith("JPY") else 0.0001
    return PIP_CACHE[pair]


def to_utc(val: Any, unit: str = "s") -> datetime:
    """Convert epoch numbers / strings / timestamps → tz-aware UTC datetime.

    Naïve inputs are taken as UTC. Raises ValueError when unparseable.
    """
    if isinstance(val, (int, float)) or (isinstance(val, str) and val.isdigit()):
        ts = pd.to_datetime(int(val), unit=unit, errors="coerce")
    else:
        ts = pd.to_datetime(val, errors="coerce")
    if ts is pd.NaT or pd.isna(ts):
        raise ValueError(f"unparseable timestamp: {val!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert(timezone.utc).to_pydatetime()
