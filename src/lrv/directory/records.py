"""Directory records and the normalization of heterogeneous upstream documents.

Mapping and reference-range documents arrive with several field-name
spellings depending on who authored them. Everything past this module only
sees :class:`TestMapping` and :class:`ReferenceRange`.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

_SEX_ALIASES = {"MALE": "M", "FEMALE": "F", "UNISEX": "U", "ANY": "U", "": "U"}


@dataclass(frozen=True)
class TestMapping:
    __test__ = False  # not a pytest class

    local_test_id: str
    canonical_code: Optional[str]
    canonical_unit: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class ReferenceRange:
    canonical_code: str
    sex: str = "U"
    age_min: Optional[float] = None
    age_max: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None
    critical_low: Optional[float] = None
    critical_high: Optional[float] = None
    unit: Optional[str] = None
    range_id: Optional[str] = None


def _first(doc: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = doc.get(k)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None


def opt_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _opt_float(v: Any, field_name: str) -> Optional[float]:
    if v is None:
        return None
    if isinstance(v, bool):
        raise ValueError(f"{field_name} must be numeric (got {v!r})")
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be numeric (got {v!r})") from None
    if math.isnan(f):
        raise ValueError(f"{field_name} must be numeric (got {v!r})")
    return f


def normalize_sex(v: Any) -> str:
    s = str(v or "").strip().upper()
    return _SEX_ALIASES.get(s, s)


def mapping_from_document(doc: Dict[str, Any]) -> TestMapping:
    local_id = opt_str(_first(doc, "localTestId", "local_test_id"))
    if local_id is None:
        raise ValueError("Mapping document has no localTestId")
    return TestMapping(
        local_test_id=local_id,
        canonical_code=opt_str(_first(doc, "loinc", "loincCode", "loinc_code", "canonical_code")),
        canonical_unit=opt_str(_first(doc, "defaultUnitUCUM", "unit", "unit_ucum", "canonical_unit")),
        display_name=opt_str(_first(doc, "displayName", "localName", "display_name")),
    )


def range_from_document(doc: Dict[str, Any]) -> ReferenceRange:
    code = opt_str(_first(doc, "loinc", "loincCode", "loinc_code", "canonical_code"))
    if code is None:
        raise ValueError("Reference range document has no canonical code")
    return ReferenceRange(
        canonical_code=code,
        sex=normalize_sex(_first(doc, "sex", "gender")),
        age_min=_opt_float(_first(doc, "ageMin", "age_min"), "ageMin"),
        age_max=_opt_float(_first(doc, "ageMax", "age_max"), "ageMax"),
        low=_opt_float(_first(doc, "low", "minValue"), "low"),
        high=_opt_float(_first(doc, "high", "maxValue"), "high"),
        critical_low=_opt_float(_first(doc, "criticalLow", "critical_low"), "criticalLow"),
        critical_high=_opt_float(_first(doc, "criticalHigh", "critical_high"), "criticalHigh"),
        unit=opt_str(_first(doc, "unit", "unitUCUM")),
        range_id=opt_str(_first(doc, "$id", "id", "range_id")),
    )


def _iter_jsonl(text: str) -> Iterable[Dict[str, Any]]:
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        obj = json.loads(line)
        if not isinstance(obj, dict):
            raise ValueError(f"Line {lineno}: expected a JSON object")
        yield obj


def parse_mappings_jsonl(text: str) -> List[TestMapping]:
    return [mapping_from_document(obj) for obj in _iter_jsonl(text)]


def parse_ranges_jsonl(text: str) -> List[ReferenceRange]:
    return [range_from_document(obj) for obj in _iter_jsonl(text)]
