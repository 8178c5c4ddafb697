"""Fixed-table conversion between canonical units.

The table is bidirectional: every entry ``(A, B) -> f`` converts by
multiplying with ``f`` and the reverse pair divides by it. Mass/molar
conversions (mg/dL <-> mmol/L) depend on the analyte, so their factor is
supplied per call; the default is the glucose factor.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

GLUCOSE_FACTOR = 18.0182

MOLAR = "molar"

# (from, to) -> multiplicative factor, or MOLAR for the analyte-specific factor
# expressed as mg/dL per mmol/L.
_FORWARD: Dict[Tuple[str, str], object] = {
    ("g/dL", "g/L"): 10.0,
    ("mg/dL", "g/L"): 0.01,
    ("mmol/L", "mg/dL"): MOLAR,
}


def _build_table(forward: Dict[Tuple[str, str], object]) -> Mapping[Tuple[str, str], Tuple[object, bool]]:
    # value: (factor, inverse)
    table: Dict[Tuple[str, str], Tuple[object, bool]] = {}
    for (src, dst), factor in forward.items():
        table[(src, dst)] = (factor, False)
        table[(dst, src)] = (factor, True)
    return MappingProxyType(table)


CONVERSIONS = _build_table(_FORWARD)


@dataclass(frozen=True)
class Conversion:
    value: float
    note: Optional[str]


def supported_pairs() -> Tuple[Tuple[str, str], ...]:
    return tuple(CONVERSIONS.keys())


def convert(
    value: float,
    from_unit: str,
    to_unit: str,
    *,
    molar_factor: float = GLUCOSE_FACTOR,
    analyte_code: Optional[str] = None,
) -> Optional[Conversion]:
    """Convert ``value`` between canonical units.

    Returns None when the pair is not tabulated. Identity conversions never
    consult the table and carry no note.
    """
    if from_unit == to_unit:
        return Conversion(value=value, note=None)

    entry = CONVERSIONS.get((from_unit, to_unit))
    if entry is None:
        return None

    factor, inverse = entry
    note = f"{from_unit}->{to_unit}"
    if factor is MOLAR:
        factor = molar_factor
        if analyte_code and molar_factor != GLUCOSE_FACTOR:
            note += f" (factor {molar_factor:g} for {analyte_code})"
        else:
            note += f" (glucose factor {GLUCOSE_FACTOR:g})"

    converted = value / factor if inverse else value * factor
    return Conversion(value=converted, note=note)


class UnitConverter:
    """Applies analyte-specific molar factors on top of :func:`convert`."""

    def __init__(self, molar_factors: Optional[Mapping[str, float]] = None, default_molar_factor: float = GLUCOSE_FACTOR):
        self.molar_factors: Mapping[str, float] = MappingProxyType(dict(molar_factors or {}))
        self.default_molar_factor = default_molar_factor

    def factor_for(self, analyte_code: Optional[str]) -> float:
        if analyte_code and analyte_code in self.molar_factors:
            return self.molar_factors[analyte_code]
        return self.default_molar_factor

    def convert(self, value: float, from_unit: str, to_unit: str, analyte_code: Optional[str] = None) -> Optional[Conversion]:
        return convert(
            value,
            from_unit,
            to_unit,
            molar_factor=self.factor_for(analyte_code),
            analyte_code=analyte_code,
        )
