from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import Draft202012Validator, FormatChecker

INBOUND_BATCH = "inbound/lab_result_batch.v1.json"
OBSERVATION_RECORD = "canonical/observation_record.v1.json"


def load_contract(repo_root: Path, name: str = INBOUND_BATCH) -> Draft202012Validator:
    contract_path = repo_root / "contracts" / name
    schema = json.loads(contract_path.read_text(encoding="utf-8"))
    return Draft202012Validator(schema, format_checker=FormatChecker())


def contract_errors(validator: Draft202012Validator, record: Dict[str, Any], limit: int = 10) -> List[str]:
    errors = sorted(validator.iter_errors(record), key=lambda e: list(e.path))
    out = []
    for e in errors[:limit]:
        loc = ".".join([str(p) for p in e.path]) or "<root>"
        out.append(f"{loc}: {e.message}")
    return out
