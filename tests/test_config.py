import logging

import pytest
import yaml

from pathwatcher import config


def test_default_config_created(tmp_path, caplog):
    config_file = tmp_path / "config.yml"
    caplog.set_level(logging.INFO, logger="pathwatcher")

    loaded = config.load_or_create_default(str(config_file))

    assert config_file.exists()
    assert yaml.safe_load(config_file.read_text()) == {"paths": ["/tmp", "/opt"]}
    assert loaded.paths == ("/tmp", "/opt")
    assert f"Default configuration created at {config_file}" in caplog.text


def test_existing_config_not_overwritten(tmp_path, caplog):
    config_file = tmp_path / "config.yml"
    with open(config_file, "w") as f:
        yaml.dump({"paths": ["/a", "/b"]}, f)
    before = config_file.read_bytes()
    caplog.set_level(logging.INFO, logger="pathwatcher")

    loaded = config.load_or_create_default(str(config_file))

    assert loaded == config.Configuration(paths=("/a", "/b"))
    assert config_file.read_bytes() == before
    assert "Default configuration created" not in caplog.text


def test_rerun_leaves_file_unchanged(tmp_path):
    config_file = tmp_path / "config.yml"

    first = config.load_or_create_default(str(config_file))
    after_first = config_file.read_bytes()
    second = config.load_or_create_default(str(config_file))

    assert config_file.read_bytes() == after_first
    assert first == second


def test_empty_config_has_no_paths(tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text("")

    assert config.load_config(str(config_file)).paths == ()


def test_malformed_config_raises(tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text("paths: [/tmp\n")

    with pytest.raises(config.ConfigError):
        config.load_config(str(config_file))


@pytest.mark.parametrize("content", ["paths: /tmp\n", "paths:\n  - 1\n", "- /tmp\n"])
def test_invalid_paths_raise(tmp_path, content):
    config_file = tmp_path / "config.yml"
    config_file.write_text(content)

    with pytest.raises(config.ConfigError):
        config.load_config(str(config_file))


def test_unwritable_default_raises(tmp_path):
    config_file = tmp_path / "missing_dir" / "config.yml"

    with pytest.raises(config.ConfigError):
        config.create_default_config(str(config_file))


def test_resolve_config_path(monkeypatch):
    monkeypatch.delenv(config.ENV_CONFIG_VAR, raising=False)
    assert config.resolve_config_path() == "config.yml"

    monkeypatch.setenv(config.ENV_CONFIG_VAR, "/etc/pathwatcher.yml")
    assert config.resolve_config_path() == "/etc/pathwatcher.yml"
    assert config.resolve_config_path("custom.yml") == "custom.yml"
