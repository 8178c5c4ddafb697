"""Diagnostic report sink backed by Azure Data Lake Storage.

A batch is committed as one JSON document uploaded in a single call, so
either the whole report lands or nothing does.
"""
from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from azure.core.exceptions import AzureError
from jsonschema import Draft202012Validator

from lrv.common.clock import utc_now_iso, utc_path_date
from lrv.common.contract import contract_errors
from lrv.common.errors import SinkError
from lrv.pipeline.outcome import ProcessedObservation, SinkHandle

logger = logging.getLogger(__name__)


def to_observation_record(obs: ProcessedObservation, sequence: int, metadata: Dict[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "sequence": sequence,
        "loincCode": obs.canonical_code,
        "patientId": metadata.get("patient_id"),
        "patientName": metadata.get("patient_name"),
        "value": obs.value,
        "unit": obs.unit,
        "abnormalFlag": obs.interpretation,
        "status": "final",
        "recordedAt": obs.timestamp,
        "performer": metadata.get("submitted_by") or "unknown",
        "rawTest": obs.to_dict(),
    }
    if obs.conversion_note:
        record["conversionNote"] = obs.conversion_note
    return record


class AdlsReportSink:
    def __init__(
        self,
        dl,
        *,
        container: str,
        reports_root: str,
        record_validator: Optional[Draft202012Validator] = None,
    ):
        self.dl = dl
        self.container = container
        self.reports_root = reports_root.rstrip("/")
        self.record_validator = record_validator

    def build_report(self, report_id: str, observations: Sequence[ProcessedObservation], metadata: Dict[str, Any]) -> Dict[str, Any]:
        records: List[Dict[str, Any]] = []
        for i, obs in enumerate(observations, start=1):
            rec = to_observation_record(obs, i, metadata)
            if self.record_validator is not None:
                problems = contract_errors(self.record_validator, rec)
                if problems:
                    raise SinkError("validate_observation", "; ".join(problems), local_test_id=obs.local_test_id)
            records.append(rec)

        issued = utc_now_iso()
        return {
            "reportId": report_id,
            "patientId": metadata.get("patient_id"),
            "patientName": metadata.get("patient_name"),
            "reportDate": issued,
            "issuedAt": issued,
            "status": "final",
            "performedBy": metadata.get("submitted_by") or "unknown",
            "incomingDocId": metadata.get("incoming_doc_id"),
            "observations": records,
        }

    def commit(self, observations: Sequence[ProcessedObservation], metadata: Dict[str, Any]) -> SinkHandle:
        report_id = uuid.uuid4().hex
        report = self.build_report(report_id, observations, metadata)

        path = f"{self.reports_root}/{utc_path_date()}/{report_id}.json"
        body = json.dumps(report, ensure_ascii=False).encode("utf-8")
        try:
            fs = self.dl.get_file_system_client(self.container)
            fs.get_file_client(path).upload_data(body, overwrite=False)
        except AzureError as e:
            raise SinkError("upload_report", f"{self.container}/{path}: {e}") from e

        logger.info("Wrote diagnostic report %s (%d observations)", report_id, len(observations))
        return SinkHandle(report_id=report_id, location=f"{self.container}/{path}")
