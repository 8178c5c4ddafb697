from pathlib import Path

import pytest

from lrv.common.config import load_base_config, load_pipeline_settings, read_scope_from_env
from lrv.tenancy.tenant_context import build_tenant_paths

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_base_config_pipeline_settings():
    settings = load_pipeline_settings(load_base_config(REPO_ROOT))

    assert settings.range_tie_break == "first"
    assert settings.default_molar_factor == 18.0182
    assert settings.molar_factors["2093-3"] == 38.67
    assert settings.default_sex == "U"


def test_pipeline_settings_defaults_when_block_missing():
    settings = load_pipeline_settings({})
    assert settings.range_tie_break == "first"
    assert dict(settings.molar_factors) == {}


def test_unknown_tie_break_rejected():
    with pytest.raises(ValueError, match="range_tie_break"):
        load_pipeline_settings({"pipeline": {"range_tie_break": "latest"}})


def test_non_positive_factor_rejected():
    with pytest.raises(ValueError):
        load_pipeline_settings({"pipeline": {"molar_factors": {"2345-7": 0}}})


def test_molar_factors_are_read_only():
    settings = load_pipeline_settings(load_base_config(REPO_ROOT))
    with pytest.raises(TypeError):
        settings.molar_factors["2345-7"] = 1.0


def test_scope_from_env(monkeypatch):
    cfg = load_base_config(REPO_ROOT)
    monkeypatch.setenv("TENANT_ID", "TENANT_DEMO")
    monkeypatch.setenv("ENV", "dev")
    monkeypatch.delenv("WORKSPACE_ID", raising=False)

    scope = read_scope_from_env(cfg)
    assert scope.tenant_id == "TENANT_DEMO"
    assert scope.workspace_id is None

    monkeypatch.setenv("ENV", "staging")
    with pytest.raises(ValueError, match="ENV"):
        read_scope_from_env(cfg)


def test_scope_requires_tenant_and_reads_workspace(monkeypatch):
    cfg = load_base_config(REPO_ROOT)
    monkeypatch.setenv("ENV", "Prod")
    monkeypatch.setenv("WORKSPACE_ID", " ws-9 ")
    monkeypatch.setenv("TENANT_ID", "  ")
    with pytest.raises(ValueError, match="TENANT_ID"):
        read_scope_from_env(cfg)

    monkeypatch.setenv("TENANT_ID", "T1")
    scope = read_scope_from_env(cfg)
    assert scope.environment == "prod"
    assert scope.workspace_id == "ws-9"


def test_tenant_paths():
    paths = build_tenant_paths(load_base_config(REPO_ROOT), "T1")
    assert paths.mappings_path == "tenants/T1/directory/test_mappings/v1/test_mappings.jsonl"
    assert paths.reports_root == "tenants/T1/diagnostic_reports"
