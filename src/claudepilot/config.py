"""Configuration management for ClaudePilot."""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Use tomllib on Python 3.11+, fall back to tomli for 3.10
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

logger = logging.getLogger(__name__)


@dataclass
class BackendConfig:
    """Settings for the (simulated) assistant backend."""

    async_backend: bool = True      # Run submissions on a worker pool
    response_delay: float = 0.0     # Seconds the worker waits before replying
    max_workers: int = 2


@dataclass
class Config:
    """ClaudePilot configuration."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    demo_sessions: bool = field(default=True)  # Seed the start-up demo sessions
    debug_logging: bool = field(default=False)  # Enable debug logging to file (opt-in)


DEFAULT_CONFIG = Config()

# Config file path
CONFIG_DIR = Path.home() / ".claudepilot"
CONFIG_FILE = CONFIG_DIR / "config.toml"
LOG_FILE = Path.home() / ".cache" / "claudepilot" / "debug.log"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


def _file_flag(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning(f"Ignoring non-boolean {key} in config file: {value!r}")
    return default


def _workers(value: Any, source: str, default: int = DEFAULT_CONFIG.backend.max_workers) -> int:
    """Parse a worker count; anything below 1 falls back to the default."""
    if value is None:
        return default
    try:
        workers = int(value)
    except (TypeError, ValueError):
        workers = 0
    if workers < 1:
        logger.warning(f"Ignoring invalid {source}: {value!r}")
        return default
    return workers


def _load_file() -> dict[str, Any]:
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring unreadable config {CONFIG_FILE}: {e}")
        return {}


def load_config() -> Config:
    """Load configuration from environment, file, or defaults.

    Priority (highest to lowest):
    1. Environment variables (CLAUDEPILOT_*)
    2. Config file (~/.claudepilot/config.toml)
    3. Hardcoded defaults
    """
    data = _load_file()

    backend_data = data.get("backend", {})
    backend = BackendConfig(
        async_backend=_file_flag(backend_data, "async_backend", DEFAULT_CONFIG.backend.async_backend),
        response_delay=float(backend_data.get("response_delay", DEFAULT_CONFIG.backend.response_delay)),
        max_workers=_workers(backend_data.get("max_workers"), "max_workers in config file"),
    )
    demo_sessions = _file_flag(data, "demo_sessions", DEFAULT_CONFIG.demo_sessions)
    debug_logging = _file_flag(data, "debug_logging", DEFAULT_CONFIG.debug_logging)

    # Environment variables override everything
    backend.async_backend = _env_flag("CLAUDEPILOT_ASYNC_BACKEND", backend.async_backend)
    delay_env = os.getenv("CLAUDEPILOT_RESPONSE_DELAY")
    if delay_env is not None:
        try:
            backend.response_delay = float(delay_env)
        except ValueError:
            logger.warning(f"Ignoring invalid CLAUDEPILOT_RESPONSE_DELAY: {delay_env!r}")
    workers_env = os.getenv("CLAUDEPILOT_MAX_WORKERS")
    if workers_env is not None:
        backend.max_workers = _workers(workers_env, "CLAUDEPILOT_MAX_WORKERS", backend.max_workers)
    demo_sessions = _env_flag("CLAUDEPILOT_DEMO_SESSIONS", demo_sessions)
    debug_logging = _env_flag("CLAUDEPILOT_DEBUG_LOGGING", debug_logging)

    return Config(
        backend=backend,
        demo_sessions=demo_sessions,
        debug_logging=debug_logging,
    )


def save_config(config: Config) -> None:
    """Save configuration to file."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "demo_sessions": config.demo_sessions,
        "debug_logging": config.debug_logging,
    }

    # Save backend config only if non-default
    if config.backend != BackendConfig():
        data["backend"] = {
            "async_backend": config.backend.async_backend,
            "response_delay": config.backend.response_delay,
            "max_workers": config.backend.max_workers,
        }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)
