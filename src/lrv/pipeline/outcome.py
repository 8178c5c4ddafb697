from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple, Union

from lrv.directory.records import ReferenceRange

ErrorKind = Literal["resolution", "unit", "conversion", "lookup"]


@dataclass(frozen=True)
class RawTestItem:
    local_test_id: str
    value: Any  # number or numeric-looking string, kept verbatim
    unit: str
    timestamp: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class LabBatch:
    sex: str
    age: Optional[float]
    items: Tuple[RawTestItem, ...]
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    submitted_by: str = "unknown"
    submitted_at: Optional[str] = None
    incoming_doc_id: Optional[str] = None
    health_sector_id: Optional[str] = None

    def metadata(self) -> Dict[str, Any]:
        return {
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "patient_sex": self.sex,
            "patient_age": self.age,
            "submitted_by": self.submitted_by,
            "submitted_at": self.submitted_at,
            "incoming_doc_id": self.incoming_doc_id,
            "health_sector_id": self.health_sector_id,
        }


@dataclass(frozen=True)
class ProcessedObservation:
    local_test_id: str
    canonical_code: str
    display: str
    value: Any
    unit: str
    interpretation: str
    timestamp: Optional[str]
    note: Optional[str] = None
    conversion_note: Optional[str] = None
    reference_range: Optional[ReferenceRange] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "localTestId": self.local_test_id,
            "loinc": self.canonical_code,
            "display": self.display,
            "value": self.value,
            "unit": self.unit,
            "interpretation": self.interpretation,
            "timestamp": self.timestamp,
            "notes": self.note,
        }
        if self.conversion_note:
            out["conversionNote"] = self.conversion_note
        rr = self.reference_range
        if rr is not None:
            out["referenceRange"] = {
                k: v
                for k, v in {
                    "id": rr.range_id,
                    "low": rr.low,
                    "high": rr.high,
                    "criticalLow": rr.critical_low,
                    "criticalHigh": rr.critical_high,
                    "unit": rr.unit,
                }.items()
                if v is not None
            }
        return out


@dataclass(frozen=True)
class ItemError:
    local_test_id: str
    kind: ErrorKind
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"localTestId": self.local_test_id, "kind": self.kind, "reason": self.reason}


@dataclass(frozen=True)
class SinkHandle:
    report_id: str
    location: Optional[str] = None


@dataclass(frozen=True)
class Rejected:
    errors: Tuple[ItemError, ...]
    kind: str = field(default="rejected", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "errors": [e.to_dict() for e in self.errors]}


@dataclass(frozen=True)
class Accepted:
    observations: Tuple[ProcessedObservation, ...]
    handle: Optional[SinkHandle] = None
    kind: str = field(default="accepted", init=False)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "kind": self.kind,
            "observations": [o.to_dict() for o in self.observations],
        }
        if self.handle is not None:
            out["reportId"] = self.handle.report_id
            out["location"] = self.handle.location
        return out


@dataclass(frozen=True)
class CommitFailed:
    step: str
    detail: str
    local_test_id: Optional[str] = None
    kind: str = field(default="commit_failed", init=False)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind, "step": self.step, "detail": self.detail}
        if self.local_test_id:
            out["localTestId"] = self.local_test_id
        return out


BatchOutcome = Union[Rejected, Accepted, CommitFailed]
