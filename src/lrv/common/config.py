from __future__ import annotations
import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

from lrv.units.conversion import GLUCOSE_FACTOR

TIE_BREAK_POLICIES = {"first", "most_specific"}
ENVIRONMENTS = ("dev", "test", "prod")


@dataclass(frozen=True)
class RuntimeScope:
    """Which tenant a function invocation serves, read from app settings."""

    tenant_id: str
    environment: str
    workspace_id: str | None = None


@dataclass(frozen=True)
class PipelineSettings:
    range_tie_break: str = "first"
    default_molar_factor: float = GLUCOSE_FACTOR
    molar_factors: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    default_sex: str = "U"


def load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_base_config(repo_root: Path) -> Dict[str, Any]:
    return load_yaml(repo_root / "configs" / "base.yaml")


def read_scope_from_env(base_cfg: Dict[str, Any]) -> RuntimeScope:
    names = base_cfg["tenancy"]

    def setting(key: str) -> str:
        var = names.get(key)
        return os.getenv(var, "").strip() if var else ""

    tenant_id = setting("tenant_id_env")
    if not tenant_id:
        raise ValueError(f"App setting {names['tenant_id_env']} is required")

    environment = setting("environment_env").lower()
    if environment not in ENVIRONMENTS:
        raise ValueError(f"App setting {names['environment_env']} must be one of {'/'.join(ENVIRONMENTS)} (got '{environment}')")

    return RuntimeScope(tenant_id=tenant_id, environment=environment, workspace_id=setting("workspace_id_env") or None)


def load_pipeline_settings(base_cfg: Dict[str, Any]) -> PipelineSettings:
    pipeline = base_cfg.get("pipeline") or {}

    tie_break = str(pipeline.get("range_tie_break", "first")).strip().lower()
    if tie_break not in TIE_BREAK_POLICIES:
        raise ValueError(f"range_tie_break must be one of {sorted(TIE_BREAK_POLICIES)} (got '{tie_break}')")

    factors: Dict[str, float] = {}
    for code, factor in (pipeline.get("molar_factors") or {}).items():
        factor = float(factor)
        if factor <= 0:
            raise ValueError(f"Molar factor for {code} must be positive (got {factor})")
        factors[str(code)] = factor

    default_sex = str(pipeline.get("default_sex", "U")).strip().upper() or "U"

    return PipelineSettings(
        range_tie_break=tie_break,
        default_molar_factor=float(pipeline.get("default_molar_factor", GLUCOSE_FACTOR)),
        molar_factors=MappingProxyType(factors),
        default_sex=default_sex,
    )
