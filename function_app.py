import json
import logging
import os
import sys
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

# Make src/ importable on Azure (repo uses src/ layout)
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

import azure.functions as func

from lrv.common.clock import utc_now_iso, utc_path_date
from lrv.common.logging_setup import configure_logging

REPO_ROOT = Path(__file__).resolve().parent

configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger("lrv.function_app")

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)


def _request_id(req: func.HttpRequest) -> str:
    rid = (req.headers.get("x-request-id") or "").strip()
    return rid if rid else uuid.uuid4().hex


def _write_json(dl, *, container: str, path: str, doc: dict) -> str:
    fs = dl.get_file_system_client(container)
    body = json.dumps(doc, ensure_ascii=False).encode("utf-8")
    fs.get_file_client(path).upload_data(body, overwrite=True)
    return path


def _audit_best_effort(
    *,
    dl,
    audit_container: str,
    tenant_id: str,
    request_id: str,
    event: dict,
) -> Optional[str]:
    try:
        if dl and audit_container and tenant_id and request_id:
            path = f"tenants/{tenant_id}/audit/{utc_path_date()}/{request_id}.json"
            return _write_json(dl, container=audit_container, path=path, doc=event)
    except Exception:
        logger.exception("Audit write failed for request %s", request_id)
    return None


def _status_best_effort(*, dl, container: str, status_root: str, doc: dict) -> Optional[str]:
    incoming_doc_id = doc.get("incomingDocId")
    if not (dl and incoming_doc_id):
        return None
    try:
        return _write_json(dl, container=container, path=f"{status_root}/{incoming_doc_id}.json", doc=doc)
    except Exception:
        logger.exception("Failed to update batch status for %s", incoming_doc_id)
    return None


def _json_response(body: Dict[str, Any], status_code: int) -> func.HttpResponse:
    return func.HttpResponse(json.dumps(body), status_code=status_code, mimetype="application/json")


@app.route(route="healthz", methods=["GET"])
def healthz(req: func.HttpRequest) -> func.HttpResponse:
    rid = _request_id(req)
    return _json_response({"status": "ok", "request_id": rid, "ts_utc": utc_now_iso()}, 200)


@app.route(route="results/validate", methods=["POST"])
def validate_results(req: func.HttpRequest) -> func.HttpResponse:
    rid = _request_id(req)
    t0 = time.time()

    dl = None
    tenant_id = ""
    audit_container = os.getenv("STORAGE_AUDIT_CONTAINER", "audit")

    try:
        from lrv.common.config import load_base_config, load_pipeline_settings, read_scope_from_env
        from lrv.common.contract import INBOUND_BATCH, OBSERVATION_RECORD, load_contract
        from lrv.directory.adls_loader import datalake_client, load_mapping_directory, load_reference_range_directory
        from lrv.pipeline.batch import BatchProcessor
        from lrv.pipeline.submission import batch_status_document, run_submission
        from lrv.sink.adls_sink import AdlsReportSink
        from lrv.tenancy.tenant_context import build_tenant_paths

        try:
            body = req.get_json()
        except ValueError:
            body = None

        base_cfg = load_base_config(REPO_ROOT)
        scope = read_scope_from_env(base_cfg)
        tenant_id = scope.tenant_id
        settings = load_pipeline_settings(base_cfg)
        paths = build_tenant_paths(base_cfg, tenant_id)

        account = os.environ["DATALAKE_ACCOUNT"]
        directory_container = os.getenv("STORAGE_DIRECTORY_CONTAINER", "directory")
        reports_container = os.getenv("STORAGE_REPORTS_CONTAINER", "reports")
        dl = datalake_client(account)

        processor = BatchProcessor(
            mappings=load_mapping_directory(dl, container=directory_container, path=paths.mappings_path),
            ranges=load_reference_range_directory(dl, container=directory_container, path=paths.reference_ranges_path),
            sink=AdlsReportSink(
                dl,
                container=reports_container,
                reports_root=paths.reports_root,
                record_validator=load_contract(REPO_ROOT, OBSERVATION_RECORD),
            ),
            settings=settings,
        )

        status_code, out, batch, outcome = run_submission(
            body,
            validator=load_contract(REPO_ROOT, INBOUND_BATCH),
            processor=processor,
            default_sex=settings.default_sex,
        )

        status_path = None
        if batch is not None and outcome is not None:
            status_path = _status_best_effort(
                dl=dl,
                container=reports_container,
                status_root=paths.batch_status_root,
                doc=batch_status_document(outcome, batch),
            )

        audit_path = _audit_best_effort(
            dl=dl,
            audit_container=audit_container,
            tenant_id=tenant_id,
            request_id=rid,
            event={
                "request_id": rid,
                "route": "results/validate",
                "environment": scope.environment,
                "workspace_id": scope.workspace_id,
                "status": out.get("kind"),
                "duration_ms": int((time.time() - t0) * 1000),
                "item_count": len(batch.items) if batch else 0,
                "report_id": out.get("reportId"),
                "status_written_to": status_path,
                "ts_utc": utc_now_iso(),
            },
        )

        out["request_id"] = rid
        out["audit_written_to"] = f"{audit_container}/{audit_path}" if audit_path else None
        return _json_response(out, status_code)

    except Exception as e:
        logger.exception("results/validate failed (request %s)", rid)
        _audit_best_effort(
            dl=dl,
            audit_container=audit_container,
            tenant_id=tenant_id,
            request_id=rid,
            event={
                "request_id": rid,
                "route": "results/validate",
                "status": "error",
                "duration_ms": int((time.time() - t0) * 1000),
                "message": str(e),
                "ts_utc": utc_now_iso(),
            },
        )
        return _json_response({"ok": False, "kind": "error", "request_id": rid, "message": str(e)}, 500)
