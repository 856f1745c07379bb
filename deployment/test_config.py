#!/usr/bin/env python3
"""
Tests for configuration and artifact loading
"""

import json
import pytest

from deployment.artifacts import load_artifact
from deployment.config import load_credentials, load_settings
from deployment.errors import ConfigurationError

ENV_VARS = ("MNEMONIC", "PROVIDER_URL", "DEPLOY_RECEIPT_TIMEOUT", "DEPLOY_ACCOUNT_INDEX",
            "DEPLOY_LOCK_DIR", "DEPLOY_BUILD_DIR", "DEPLOY_RECORDS_DIR", "DEPLOY_LOG_FILE",
            "SLACK_WEBHOOK")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run each test in an empty directory without deployment variables"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestLoadCredentials:
    """Test class for load_credentials"""

    def test_from_config_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"mnemonic": "word " * 11 + "word", "providerUrl": "https://node"}))
        credentials = load_credentials(str(path))
        assert credentials.mnemonic == "word " * 11 + "word"
        assert credentials.provider_url == "https://node"

    def test_environment_overrides(self, tmp_path, monkeypatch):
        """Test that MNEMONIC and PROVIDER_URL win over config.json"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"mnemonic": "from file", "providerUrl": "https://file"}))
        monkeypatch.setenv("PROVIDER_URL", "https://env")
        credentials = load_credentials(str(path))
        assert credentials.mnemonic == "from file"
        assert credentials.provider_url == "https://env"

    def test_missing_file_is_not_an_error(self, tmp_path):
        """Test that absent credentials are left for the network provider to reject"""
        credentials = load_credentials(str(tmp_path / "missing.json"))
        assert credentials.mnemonic is None
        assert credentials.provider_url is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("mnemonic = x")
        with pytest.raises(ConfigurationError):
            load_credentials(str(path))


class TestLoadSettings:
    """Test class for load_settings"""

    def test_defaults(self):
        settings = load_settings()
        assert settings.receipt_timeout == 600
        assert settings.account_index == 0
        assert settings.records_dir == "deployments"
        assert settings.slack_webhook is None

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("DEPLOY_RECEIPT_TIMEOUT", "120")
        monkeypatch.setenv("DEPLOY_ACCOUNT_INDEX", "3")
        monkeypatch.setenv("SLACK_WEBHOOK", "https://hooks.slack.com/services/x")
        settings = load_settings()
        assert settings.receipt_timeout == 120.0
        assert settings.account_index == 3
        assert settings.slack_webhook == "https://hooks.slack.com/services/x"

    @pytest.mark.parametrize("name,value", [
        ("DEPLOY_RECEIPT_TIMEOUT", "ten minutes"),
        ("DEPLOY_RECEIPT_TIMEOUT", "0"),
        ("DEPLOY_ACCOUNT_INDEX", "-1"),
    ])
    def test_invalid(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            load_settings()


class TestLoadArtifact:
    """Test class for load_artifact"""

    def test_truffle_artifact(self, tmp_path):
        (tmp_path / "DMT.json").write_text(json.dumps({
            "contractName": "DMT",
            "abi": [{"type": "constructor", "inputs": []}],
            "bytecode": "0x6080",
        }))
        artifact = load_artifact(str(tmp_path), "DMT")
        assert artifact.name == "DMT"
        assert artifact.bytecode == "0x6080"
        assert artifact.abi == [{"type": "constructor", "inputs": []}]

    def test_solc_bytecode_object(self, tmp_path):
        """Test the nested bytecode object without 0x prefix"""
        (tmp_path / "DemoCrowdsale.json").write_text(json.dumps({
            "abi": [{"type": "constructor", "inputs": []}],
            "bytecode": {"object": "6080"},
        }))
        artifact = load_artifact(str(tmp_path), "DemoCrowdsale")
        assert artifact.name == "DemoCrowdsale"
        assert artifact.bytecode == "0x6080"

    def test_missing_artifact(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_artifact(str(tmp_path), "DMT")

    def test_interface_without_bytecode(self, tmp_path):
        """Test that an abstract contract artifact is rejected"""
        (tmp_path / "DMT.json").write_text(json.dumps({"abi": [{"type": "function"}], "bytecode": "0x"}))
        with pytest.raises(ConfigurationError):
            load_artifact(str(tmp_path), "DMT")


if __name__ == "__main__":
    pytest.main([__file__])
