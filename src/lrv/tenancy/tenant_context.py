from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any


@dataclass(frozen=True)
class TenantPaths:
    mappings_path: str
    reference_ranges_path: str
    reports_root: str
    batch_status_root: str


def build_tenant_paths(base_cfg: Dict[str, Any], tenant_id: str) -> TenantPaths:
    storage = base_cfg["storage"]
    map_tpl = storage["mappings"]["path_template"]
    ref_tpl = storage["reference_ranges"]["path_template"]
    rep_tpl = storage["reports"]["path_template"]
    st_tpl = storage["batch_status"]["path_template"]

    return TenantPaths(
        mappings_path=map_tpl.format(tenant_id=tenant_id),
        reference_ranges_path=ref_tpl.format(tenant_id=tenant_id),
        reports_root=rep_tpl.format(tenant_id=tenant_id).rstrip("/"),
        batch_status_root=st_tpl.format(tenant_id=tenant_id).rstrip("/"),
    )
