"""
Tests for the configuration loader.
"""

import textwrap
from pathlib import Path

import pytest

from release_train.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    EngineSettings,
    find_config_file,
    load_settings,
)


def _write(path: Path, content: str) -> Path:
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


class TestFindConfigFile:
    def test_in_start_dir(self, tmp_path: Path):
        cfg = _write(tmp_path / CONFIG_FILE, "helm: {}\n")
        assert find_config_file(tmp_path) == cfg.resolve()

    def test_in_parent(self, tmp_path: Path):
        cfg = _write(tmp_path / CONFIG_FILE, "helm: {}\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == cfg.resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_config_file(tmp_path) is None


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = load_settings()
        assert settings == EngineSettings()
        assert settings.helm.binary == "helm"
        assert settings.webhooks.max_workers == 8
        assert settings.authorization.admin_role == "release-admin"

    def test_full_file(self, tmp_path: Path):
        cfg = _write(tmp_path / CONFIG_FILE, """\
            registry:
              url: https://registry.example.com
              username: ci
              password: secret
              timeout: 5
              verify_ssl: false
            helm:
              binary: /opt/helm/bin/helm
            webhooks:
              max_workers: 2
            authorization:
              admin_role: ops
            logging:
              level: DEBUG
        """)
        settings = load_settings(cfg)
        assert settings.registry.url == "https://registry.example.com"
        assert settings.registry.timeout == 5.0
        assert settings.registry.verify_ssl is False
        assert settings.helm.binary == "/opt/helm/bin/helm"
        assert settings.helm.timeout == 60.0
        assert settings.webhooks.max_workers == 2
        assert settings.authorization.admin_role == "ops"
        assert settings.logging.level == "DEBUG"

    def test_autodetect(self, tmp_path: Path, monkeypatch):
        _write(tmp_path / CONFIG_FILE, "helm:\n  timeout: 5\n")
        monkeypatch.chdir(tmp_path)
        assert load_settings().helm.timeout == 5.0

    def test_empty_file(self, tmp_path: Path):
        cfg = _write(tmp_path / CONFIG_FILE, "")
        assert load_settings(cfg) == EngineSettings()

    def test_explicit_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        cfg = _write(tmp_path / CONFIG_FILE, "registry: [oops\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(cfg)

    def test_not_a_mapping(self, tmp_path: Path):
        cfg = _write(tmp_path / CONFIG_FILE, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(cfg)

    def test_invalid_value(self, tmp_path: Path):
        cfg = _write(tmp_path / CONFIG_FILE, "webhooks:\n  max_workers: 0\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(cfg)
