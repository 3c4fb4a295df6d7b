"""Tests for configuration loading and override behavior.

Credentials come from the environment and win over YAML values.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from investiga.utils.config import Config, ProvidersConfig, get_config, load_config, reset_config


@pytest.fixture(autouse=True)
def _reset_global_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure config singleton doesn't leak between tests."""
    for name in ("HIBP_API_KEY", "DIRECT_DATA_API_KEY", "DATAJUD_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


def _write_yaml(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_yaml_loads_values(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(
        cfg_path,
        {
            "providers": {"max_items": 3},
            "search": {"datajud_tribunal": "tjrj", "enrichment_limit": 2},
        },
    )

    cfg = load_config(cfg_path)

    assert cfg.providers.max_items == 3
    assert cfg.search.datajud_tribunal == "tjrj"
    assert cfg.search.enrichment_limit == 2
    # untouched sections keep their defaults
    assert cfg.providers.is_enabled("cpf") is True
    assert cfg.export.xlsx_mode == "single"


def test_yaml_credentials_used_without_env(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"credentials": {"hibp_api_key": "yaml_key"}})

    cfg = load_config(cfg_path)

    assert cfg.credentials.hibp_api_key == "yaml_key"


def test_env_overrides_yaml_credentials(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"credentials": {"hibp_api_key": "yaml_key"}})

    monkeypatch.setenv("HIBP_API_KEY", "env_key")

    cfg = load_config(cfg_path)

    assert cfg.credentials.hibp_api_key == "env_key"


def test_env_credential_without_yaml_section(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"providers": {"max_items": 5}})

    monkeypatch.setenv("DATAJUD_API_KEY", "cnj_key")

    cfg = load_config(cfg_path)

    assert cfg.credentials.datajud_api_key == "cnj_key"


def test_dotenv_credentials_are_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"credentials": {"direct_data_base_url": "https://yaml.example"}})
    (tmp_path / ".env").write_text(
        "HIBP_API_KEY=dotenv_key\nDIRECT_DATA_BASE_URL=https://dotenv.example\nUNRELATED=1\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    cfg = load_config(cfg_path)

    assert cfg.credentials.hibp_api_key == "dotenv_key"
    assert cfg.credentials.direct_data_base_url == "https://dotenv.example"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        load_config(tmp_path / "missing.yaml")


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, ["not", "a", "mapping"])

    with pytest.raises(ValueError, match="mapping"):
        load_config(cfg_path)


def test_enrichment_limit_above_ten_is_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"search": {"enrichment_limit": 11}})

    with pytest.raises(ValueError, match="enrichment_limit"):
        load_config(cfg_path)


def test_unknown_export_column_in_order_is_rejected(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"export": {"order": ["data", "bogus"]}})

    with pytest.raises(ValueError, match="bogus"):
        load_config(cfg_path)


def test_non_positive_timeout_is_rejected() -> None:
    with pytest.raises(ValueError):
        ProvidersConfig(timeout_seconds=0)


def test_get_config_requires_load(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        get_config()

    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {})
    cfg = load_config(cfg_path)

    assert get_config() is cfg


def test_unknown_provider_is_disabled() -> None:
    cfg = Config()

    assert cfg.providers.is_enabled("does_not_exist") is False


def test_repository_config_file_loads() -> None:
    cfg_path = Path(__file__).resolve().parents[1] / "config" / "config.yaml"

    cfg = load_config(cfg_path)

    assert cfg.cross_reference.hide_generic_names is True
    assert cfg.export.order[0] == "consulta"
