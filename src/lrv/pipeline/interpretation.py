"""Interpretation flags for a converted value against a reference range.

Precedence is fixed: critical bounds are checked before normal bounds, so a
value below both ``critical_low`` and ``low`` is CRIT_LOW, never L.
Boundary semantics are exclusive (a value equal to a bound is inside it).
"""
from __future__ import annotations

import math
from typing import Any, Literal, Optional

from lrv.directory.records import ReferenceRange

Flag = Literal["N", "L", "H", "CRIT_LOW", "CRIT_HIGH", "NO_REF"]


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def classify(value: Any, rr: Optional[ReferenceRange]) -> Flag:
    if rr is None or not is_numeric(value):
        return "NO_REF"
    if rr.critical_low is not None and value < rr.critical_low:
        return "CRIT_LOW"
    if rr.critical_high is not None and value > rr.critical_high:
        return "CRIT_HIGH"
    if rr.low is not None and value < rr.low:
        return "L"
    if rr.high is not None and value > rr.high:
        return "H"
    return "N"
