"""Envelope -> outcome -> HTTP-shaped response for one submitted batch."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft202012Validator

from lrv.common.clock import utc_now_iso
from lrv.common.contract import contract_errors
from lrv.ingest.payload import to_batch, unwrap
from lrv.pipeline.batch import BatchProcessor
from lrv.pipeline.outcome import Accepted, BatchOutcome, CommitFailed, LabBatch, Rejected

logger = logging.getLogger(__name__)

STATUS_CODES = {"accepted": 200, "rejected": 422, "commit_failed": 502}


class InvalidEnvelope(ValueError):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Inbound batch failed schema validation")


def parse_envelope(body: Any, validator: Draft202012Validator, default_sex: str = "U") -> LabBatch:
    if not isinstance(body, dict):
        raise InvalidEnvelope(["<root>: Body must be a JSON object"])
    data = unwrap(body)
    problems = contract_errors(validator, data)
    if problems:
        raise InvalidEnvelope(problems)
    return to_batch(data, default_sex=default_sex)


def batch_status_document(outcome: BatchOutcome, batch: LabBatch) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"incomingDocId": batch.incoming_doc_id, "updatedAt": utc_now_iso()}
    if isinstance(outcome, Rejected):
        doc.update(status="rejected", errors=[e.to_dict() for e in outcome.errors])
    elif isinstance(outcome, CommitFailed):
        doc.update(status="error", error=f"{outcome.step}: {outcome.detail}")
    elif isinstance(outcome, Accepted):
        doc.update(
            status="validated",
            reportId=outcome.handle.report_id if outcome.handle else None,
            validatedAt=doc["updatedAt"],
        )
    return doc


def run_submission(
    body: Any,
    *,
    validator: Draft202012Validator,
    processor: BatchProcessor,
    default_sex: str = "U",
) -> Tuple[int, Dict[str, Any], Optional[LabBatch], Optional[BatchOutcome]]:
    try:
        batch = parse_envelope(body, validator, default_sex=default_sex)
    except InvalidEnvelope as e:
        logger.warning("Rejected envelope: %d schema error(s)", len(e.errors))
        return 400, {"ok": False, "kind": "invalid", "reason": "schema", "errors": e.errors}, None, None

    outcome = processor.process(batch)
    body_out = {"ok": isinstance(outcome, Accepted), "incomingDocId": batch.incoming_doc_id}
    body_out.update(outcome.to_dict())
    return STATUS_CODES[outcome.kind], body_out, batch, outcome
