"""Tests for configuration loading and saving."""

from pathlib import Path
from unittest.mock import patch

import pytest

from claudepilot.config import BackendConfig, Config, load_config, save_config


@pytest.fixture
def config_paths(tmp_path: Path, monkeypatch):
    """Point the config module at a temp directory and clear env overrides."""
    for name in (
        "CLAUDEPILOT_ASYNC_BACKEND",
        "CLAUDEPILOT_RESPONSE_DELAY",
        "CLAUDEPILOT_MAX_WORKERS",
        "CLAUDEPILOT_DEMO_SESSIONS",
        "CLAUDEPILOT_DEBUG_LOGGING",
    ):
        monkeypatch.delenv(name, raising=False)
    config_dir = tmp_path / ".claudepilot"
    config_file = config_dir / "config.toml"
    with patch("claudepilot.config.CONFIG_DIR", config_dir), \
         patch("claudepilot.config.CONFIG_FILE", config_file):
        yield config_file


def test_defaults_without_file(config_paths):
    config = load_config()
    assert config == Config()
    assert config.demo_sessions is True
    assert config.debug_logging is False
    assert config.backend.async_backend is True


def test_save_then_load(config_paths):
    config = Config(
        backend=BackendConfig(async_backend=False, response_delay=0.5, max_workers=4),
        demo_sessions=False,
        debug_logging=True,
    )
    save_config(config)
    assert config_paths.exists()
    assert load_config() == config


def test_default_backend_section_not_written(config_paths):
    save_config(Config())
    assert "[backend]" not in config_paths.read_text()


def test_env_overrides_file(config_paths, monkeypatch):
    save_config(Config(demo_sessions=True, debug_logging=False))
    monkeypatch.setenv("CLAUDEPILOT_DEMO_SESSIONS", "0")
    monkeypatch.setenv("CLAUDEPILOT_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("CLAUDEPILOT_ASYNC_BACKEND", "false")
    monkeypatch.setenv("CLAUDEPILOT_RESPONSE_DELAY", "1.25")

    config = load_config()
    assert config.demo_sessions is False
    assert config.debug_logging is True
    assert config.backend.async_backend is False
    assert config.backend.response_delay == 1.25


def test_invalid_delay_env_ignored(config_paths, monkeypatch):
    monkeypatch.setenv("CLAUDEPILOT_RESPONSE_DELAY", "soon")
    assert load_config().backend.response_delay == 0.0


def test_malformed_file_falls_back_to_defaults(config_paths):
    config_paths.parent.mkdir(parents=True)
    config_paths.write_text("this is = = not toml")
    assert load_config() == Config()


def test_non_boolean_flags_in_file_ignored(config_paths):
    config_paths.parent.mkdir(parents=True)
    config_paths.write_text(
        'demo_sessions = "no"\n'
        "[backend]\n"
        'async_backend = "false"\n'
    )
    config = load_config()
    assert config.demo_sessions is True
    assert config.backend.async_backend is True


def test_false_flag_in_file_respected(config_paths):
    config_paths.parent.mkdir(parents=True)
    config_paths.write_text("[backend]\nasync_backend = false\n")
    assert load_config().backend.async_backend is False


@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_invalid_max_workers_in_file_uses_default(config_paths, value):
    config_paths.parent.mkdir(parents=True)
    config_paths.write_text(f'[backend]\nmax_workers = "{value}"\n')
    assert load_config().backend.max_workers == 2


def test_max_workers_env_override(config_paths, monkeypatch):
    monkeypatch.setenv("CLAUDEPILOT_MAX_WORKERS", "6")
    assert load_config().backend.max_workers == 6
    monkeypatch.setenv("CLAUDEPILOT_MAX_WORKERS", "0")
    assert load_config().backend.max_workers == 2
