"""Tests for configuration loading."""

import pytest

from opendata_catalog.config import CONFIG_ENV_VAR, SyncConfig, load_config
from opendata_catalog.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    return tmp_path


def test_defaults_when_no_file(isolated):
    config = load_config()

    assert config == SyncConfig()
    assert config.scheduler.concurrency == 10
    assert config.data_portal.content_probing is True
    assert config.api_catalog.enabled is False
    assert config.refresh.frequency_minutes == 60
    assert config.refresh.timeout_minutes == 20


def test_camel_case_file(isolated):
    (isolated / "catalog-sync.yaml").write_text(
        "environment: staging\n"
        "scheduler:\n"
        "  concurrency: 4\n"
        "  timeoutSeconds: 15\n"
        "dataPortal:\n"
        "  baseUrl: https://portal.example.org/api/3/action/\n"
        "  contentProbing: false\n"
        "apiCatalog:\n"
        "  enabled: true\n"
        "refresh:\n"
        "  frequencyMinutes: 30\n"
    )

    config = load_config()

    assert config.environment == "staging"
    assert config.scheduler.concurrency == 4
    assert config.scheduler.timeout_seconds == 15.0
    assert config.data_portal.base_url == "https://portal.example.org/api/3/action"
    assert config.data_portal.list_url == "https://portal.example.org/api/3/action/package_list"
    assert config.data_portal.content_probing is False
    assert config.api_catalog.enabled is True
    assert config.refresh.frequency_minutes == 30
    assert config.refresh.timeout_minutes == 20


def test_snake_case_keys():
    config = SyncConfig.from_dict({"data_portal": {"portal_url": "https://p.example.org"}})

    assert config.data_portal.portal_url == "https://p.example.org"


def test_env_var_path(isolated, monkeypatch):
    path = isolated / "elsewhere.yaml"
    path.write_text("environment: dev\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_config().environment == "dev"


def test_to_dict_round_trip():
    config = SyncConfig.from_dict({"environment": "qa", "scheduler": {"concurrency": 2}})

    assert SyncConfig.from_dict(config.to_dict()) == config


def test_missing_explicit_path(isolated):
    with pytest.raises(ConfigError) as exc_info:
        load_config(str(isolated / "nope.yaml"))

    assert exc_info.value.path.endswith("nope.yaml")


def test_malformed_yaml(isolated):
    path = isolated / "bad.yaml"
    path.write_text("scheduler: [unclosed\n")

    with pytest.raises(ConfigError):
        load_config(str(path))


@pytest.mark.parametrize(
    "data",
    [
        ["not", "a", "mapping"],
        {"scheduler": {"concurrency": "many"}},
        {"dataPortal": "https://portal.example.org"},
    ],
)
def test_invalid_structure(data):
    with pytest.raises(ConfigError):
        SyncConfig.from_dict(data)
