"""Free-text unit strings -> canonical unit tokens."""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional

# Keys are case-folded with internal whitespace removed.
_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "g/dl": "g/dL",
        "gdl": "g/dL",
        "g/l": "g/L",
        "gl": "g/L",
        "mg/dl": "mg/dL",
        "mgdl": "mg/dL",
        "mmol/l": "mmol/L",
        "mmoll": "mmol/L",
        "iu/l": "IU/L",
        "%": "%",
        "percent": "%",
    }
)

CANONICAL_UNITS = frozenset(_ALIASES.values())

_WS = re.compile(r"\s+")


def _alias_key(raw_unit: str) -> str:
    return _WS.sub("", raw_unit).casefold()


def canonicalize(raw_unit: Optional[str]) -> Optional[str]:
    """Return the canonical token for ``raw_unit`` or None when unrecognized."""
    if raw_unit is None:
        return None
    key = _alias_key(str(raw_unit))
    if not key:
        return None
    return _ALIASES.get(key)
