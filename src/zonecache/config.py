"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for zonecache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.zonecache/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.  The *cache* directory is not among them: cached
  resources go to the system temp dir unless configured otherwise.
* **Global config** -- A single :class:`~zonecache.models.GlobalConfig`
  JSON file storing defaults (URI, timeout, TTL, cache directory, output
  format).
* **Precedence resolution** -- :func:`resolve_fetch_config` merges CLI
  flags, environment variables, and the global config into the effective
  :class:`~zonecache.models.FetchConfig`.

The config file is written with :func:`~zonecache.atomic.replace_atomically`,
so a crash mid-write never leaves a truncated file behind.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from zonecache.atomic import replace_atomically
from zonecache.exceptions import ConfigurationError
from zonecache.models import FetchConfig, GlobalConfig

_APP_NAME = "zonecache"
_CONFIG_FILENAME = "config.json"

ENV_TIMEOUT_MS = "ZONECACHE_TIMEOUT_MS"
ENV_TTL_SECONDS = "ZONECACHE_TTL_SECONDS"
ENV_CACHE_DIR = "ZONECACHE_CACHE_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/zonecache/`` (default ``~/.config/zonecache/``).
    On macOS/Windows: ``~/.zonecache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/zonecache/`` (default ``~/.local/share/zonecache/``).
    On macOS/Windows: ``~/.zonecache/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Global config ---


def get_config_path() -> Path:
    """Path of the global ``config.json`` (which may not exist yet)."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~zonecache.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigurationError: If the file exists but contains invalid JSON
            or fails Pydantic validation.
    """
    path = get_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration, replacing the file atomically."""
    text = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    with replace_atomically(get_config_path()) as fh:
        fh.write(text.encode("utf-8"))


def reset_global_config() -> bool:
    """Delete the global config file.  Returns ``False`` if there was none."""
    try:
        get_config_path().unlink()
    except FileNotFoundError:
        return False
    return True


# --- Precedence resolution ---


def _env_override(name: str) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    return value or None


def resolve_fetch_config(
    cli_timeout_ms: Optional[int] = None,
    cli_ttl_seconds: Optional[float] = None,
    cli_cache_dir: Optional[str] = None,
    global_config: Optional[GlobalConfig] = None,
) -> FetchConfig:
    """Resolve the effective fetch settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_timeout_ms``, ``cli_ttl_seconds``, ``cli_cache_dir``)
        2. Environment variables (``ZONECACHE_TIMEOUT_MS``,
           ``ZONECACHE_TTL_SECONDS``, ``ZONECACHE_CACHE_DIR``)
        3. User config (``~/.config/zonecache/config.json``)
        4. Defaults

    Args:
        global_config: Already-loaded user config; read from disk when
            ``None``.

    Raises:
        ConfigurationError: If any layer yields an invalid value (for
            example a negative timeout or a non-numeric env var).
    """
    # 4 + 3. Defaults filled in by the model, then the user config
    base = (global_config or load_global_config()).fetch
    overrides: dict[str, Any] = {}

    # 2. Environment variables
    env_timeout = _env_override(ENV_TIMEOUT_MS)
    if env_timeout is not None:
        overrides["timeout_ms"] = env_timeout
    env_ttl = _env_override(ENV_TTL_SECONDS)
    if env_ttl is not None:
        overrides["ttl"] = env_ttl
    env_cache_dir = _env_override(ENV_CACHE_DIR)
    if env_cache_dir is not None:
        overrides["cache_directory"] = Path(env_cache_dir).expanduser()

    # 1. CLI flags (highest precedence)
    if cli_timeout_ms is not None:
        overrides["timeout_ms"] = cli_timeout_ms
    if cli_ttl_seconds is not None:
        overrides["ttl"] = cli_ttl_seconds
    if cli_cache_dir is not None:
        overrides["cache_directory"] = Path(cli_cache_dir).expanduser()

    if not overrides:
        return base

    data = base.model_dump()
    data.update(overrides)
    try:
        return FetchConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid fetch settings: {exc}") from exc


def resolve_uri(cli_uri: Optional[str], global_config: Optional[GlobalConfig] = None) -> str:
    """Return *cli_uri*, or the configured ``default_uri`` when it is ``None``."""
    if cli_uri:
        return cli_uri
    return (global_config or load_global_config()).default_uri
