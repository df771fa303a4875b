"""Tests for settings resolution and credential lookup."""

import json
from pathlib import Path

import pytest

from bookcovers import config
from bookcovers.config import EnvCredentialProvider, Settings, load_settings
from bookcovers.errors import ConfigError, CredentialMissing


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch):
    """Point the default config location at an empty temp directory."""
    monkeypatch.setattr(config, "get_config_dir", lambda: tmp_path / "user_config")


def _write_config(tmp_path: Path, payload) -> Path:
    config_fp = tmp_path / "settings.json"
    config_fp.write_text(json.dumps(payload), encoding="utf-8")
    return config_fp


def test_load_settings_defaults():
    """Ensure defaults reproduce the fixed Book.io/Blockfrost setup."""
    settings = load_settings()
    assert settings == Settings()
    assert settings.target_chain == "cardano"
    assert (settings.sample_offset, settings.sample_count) == (1, 10)


def test_load_settings_file_then_overrides(tmp_path: Path):
    """Ensure explicit overrides win over file values and None overrides are ignored."""
    config_fp = _write_config(tmp_path, {"sample_count": 5, "timeout": 10, "registry_url": "https://r.test/"})
    settings = load_settings(config_fp, sample_count=3, sample_offset=None)
    assert settings.sample_count == 3
    assert settings.sample_offset == 1
    assert settings.timeout == 10.0
    assert settings.registry_url == "https://r.test/"


def test_load_settings_reads_default_location(tmp_path: Path):
    """Ensure config.json in the user config directory is picked up when present."""
    user_dir = tmp_path / "user_config"
    user_dir.mkdir()
    (user_dir / "config.json").write_text(json.dumps({"target_chain": "cardano-preprod"}), encoding="utf-8")
    assert load_settings().target_chain == "cardano-preprod"


@pytest.mark.parametrize(
    "payload, expected_message",
    [
        pytest.param({"sample_size": 3}, "unknown setting", id="unknown_key"),
        pytest.param({"sample_count": "10"}, "must be int", id="string_for_int"),
        pytest.param({"sample_count": True}, "must be int", id="bool_for_int"),
        pytest.param({"sample_count": 0}, "sample_count", id="zero_count"),
        pytest.param({"sample_offset": -1}, "sample_offset", id="negative_offset"),
        pytest.param({"timeout": 0}, "timeout", id="zero_timeout"),
        pytest.param(["not", "an", "object"], "JSON object", id="array_payload"),
    ],
)
def test_load_settings_rejects_bad_values(tmp_path: Path, payload, expected_message: str):
    """Ensure invalid config files raise ConfigError."""
    config_fp = _write_config(tmp_path, payload)
    with pytest.raises(ConfigError) as exc_info:
        load_settings(config_fp)
    assert expected_message in str(exc_info.value)


def test_load_settings_missing_explicit_file(tmp_path: Path):
    """Ensure an explicit missing config path is an error."""
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.json")


def test_credential_provider_per_service():
    """Ensure each logical service maps to its own environment variable."""
    provider = EnvCredentialProvider(environ={"CARDANO_PROJECT_ID": "ledger", "IPFS_PROJECT_ID": "gateway"})
    assert provider.get("ledger") == "ledger"
    assert provider.get("gateway") == "gateway"


@pytest.mark.parametrize("environ", [{}, {"IPFS_PROJECT_ID": ""}])
def test_credential_provider_missing(environ: dict):
    """Ensure unset or empty variables raise CredentialMissing naming the variable."""
    with pytest.raises(CredentialMissing) as exc_info:
        EnvCredentialProvider(environ=environ).get("gateway")
    assert "IPFS_PROJECT_ID" in str(exc_info.value)
