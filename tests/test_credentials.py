"""
Tests for credential specifications and sources.
"""

import pytest

from heartbeat_tools.credentials import (
    CREDENTIAL_SPECS,
    ConfigFileSource,
    CredentialError,
    CredentialManager,
    DictSource,
    EnvVarSource,
)


def test_heartbeat_spec_exists():
    creds = CredentialManager()
    spec = creds.get_spec("heartbeat")
    assert spec is not None
    assert spec.env_var == "HEARTBEAT_API_KEY"
    assert spec.startup_required
    assert "heartbeat" in CREDENTIAL_SPECS["heartbeat"].tools


def test_env_var_alias(monkeypatch):
    monkeypatch.setenv("HEARTBEAT_API_KEY", "from-env")
    assert CredentialManager().get("heartbeat") == "from-env"


def test_first_source_wins(monkeypatch):
    monkeypatch.setenv("HEARTBEAT_API_KEY", "from-env")
    creds = CredentialManager(
        [DictSource({"heartbeat": "from-dict"}), EnvVarSource({"heartbeat": "HEARTBEAT_API_KEY"})]
    )
    assert creds.get("heartbeat") == "from-dict"


def test_empty_value_falls_through(monkeypatch):
    monkeypatch.setenv("HEARTBEAT_API_KEY", "")
    creds = CredentialManager(
        [EnvVarSource({"heartbeat": "HEARTBEAT_API_KEY"}), DictSource({"heartbeat": "backup"})]
    )
    assert creds.get("heartbeat") == "backup"


def test_config_file_source(tmp_path):
    path = tmp_path / "credentials.yaml"
    path.write_text("heartbeat: from-file\n")

    assert ConfigFileSource(path).get("heartbeat") == "from-file"


def test_missing_or_malformed_file_is_empty(tmp_path):
    assert ConfigFileSource(tmp_path / "absent.yaml").get("heartbeat") is None

    bad = tmp_path / "bad.yaml"
    bad.write_text("heartbeat: [unclosed\n")
    assert ConfigFileSource(bad).get("heartbeat") is None


def test_default_reads_credentials_file(tmp_path, monkeypatch):
    path = tmp_path / "credentials.yaml"
    path.write_text("heartbeat: from-file\n")
    monkeypatch.delenv("HEARTBEAT_API_KEY", raising=False)
    monkeypatch.setenv("HEARTBEAT_CREDENTIALS_FILE", str(path))

    assert CredentialManager.default().get("heartbeat") == "from-file"


def test_get_or_error(monkeypatch):
    monkeypatch.delenv("HEARTBEAT_API_KEY", raising=False)
    creds = CredentialManager()

    with pytest.raises(CredentialError, match="Set HEARTBEAT_API_KEY"):
        creds.get_or_error("heartbeat")


def test_validate_startup():
    CredentialManager.for_testing({"heartbeat": "k"}).validate_startup()

    with pytest.raises(CredentialError, match="HEARTBEAT_API_KEY"):
        CredentialManager.for_testing({}).validate_startup()
