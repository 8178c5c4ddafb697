from __future__ import annotations

import math
from typing import Any, Dict, Optional

from lrv.directory.records import normalize_sex, opt_str
from lrv.pipeline.outcome import LabBatch, RawTestItem


def unwrap(body: Dict[str, Any]) -> Dict[str, Any]:
    # Trigger bodies sometimes nest the submission under "payload"
    inner = body.get("payload")
    return inner if isinstance(inner, dict) else body


def _parse_age(v: Any) -> Optional[float]:
    if isinstance(v, bool) or v is None:
        return None
    try:
        age = float(str(v).strip()) if isinstance(v, str) else float(v)
    except (OverflowError, TypeError, ValueError):
        return None
    return age if math.isfinite(age) else None


def to_item(obj: Dict[str, Any]) -> RawTestItem:
    return RawTestItem(
        local_test_id=str(obj.get("localTestId") or "_unknown"),
        value=obj.get("value"),
        unit=str(obj.get("unit") or ""),
        timestamp=opt_str(obj.get("timestamp")),
        note=opt_str(obj.get("notes")),
    )


def to_batch(payload: Dict[str, Any], default_sex: str = "U") -> LabBatch:
    data = unwrap(payload)
    sex_raw = data.get("sex") or data.get("P_sex") or data.get("P_gender") or default_sex

    return LabBatch(
        sex=normalize_sex(sex_raw),
        age=_parse_age(data.get("P_age")),
        items=tuple(to_item(t) for t in (data.get("result") or []) if isinstance(t, dict)),
        patient_id=opt_str(data.get("P_id")),
        patient_name=opt_str(data.get("p_name")),
        submitted_by=opt_str(data.get("submittedBy")) or opt_str(data.get("staff_id")) or "unknown",
        submitted_at=opt_str(data.get("submittedAt")),
        incoming_doc_id=opt_str(data.get("incomingDocId")),
        health_sector_id=opt_str(data.get("healthsecterid")),
    )
