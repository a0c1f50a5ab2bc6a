"""Provider configuration with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for supaauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.supaauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Provider config** -- A single :class:`~supaauth.models.ProviderConfig`
  JSON file holding the Supabase URL, anon key, and GitHub client id. A
  default file is written on first use.
* **Precedence resolution** -- :func:`resolve_provider_config` layers a
  ``.env`` file and the ``SUPABASE_URL`` / ``SUPABASE_ANON_KEY`` /
  ``GITHUB_CLIENT_ID`` environment variables over the file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from supaauth.exceptions import ConfigError
from supaauth.models import ProviderConfig

logger = logging.getLogger(__name__)

_APP_NAME = "supaauth"
_CONFIG_FILENAME = "config.json"

ENV_OVERRIDES: dict[str, str] = {
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_ANON_KEY": "supabase_anon_key",
    "GITHUB_CLIENT_ID": "github_client_id",
}
"""Environment variable name -> :class:`ProviderConfig` field it overrides."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/supaauth/`` (default ``~/.config/supaauth/``).
    On macOS/Windows: ``~/.supaauth/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs, browser profiles), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/supaauth/`` (default ``~/.local/share/supaauth/``).
    On macOS/Windows: ``~/.supaauth/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_path() -> Path:
    """Path to the provider config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Provider config ---


def load_provider_config(path: Optional[Path] = None) -> ProviderConfig:
    """Load the provider configuration from disk.

    When the file does not exist yet, a default configuration is written
    to *path* and returned so the user has a file to edit.

    Args:
        path: Config file location. Defaults to :func:`get_config_path`.

    Returns:
        The deserialised :class:`~supaauth.models.ProviderConfig`.

    Raises:
        ConfigError: If the file exists but cannot be read, contains
            invalid JSON, or fails Pydantic validation.
    """
    path = path or get_config_path()
    if not path.is_file():
        config = ProviderConfig()
        save_provider_config(config, path)
        logger.info("Wrote default provider config to %s", path)
        return config
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return ProviderConfig.model_validate(data)
    except OSError as exc:
        raise ConfigError(f"Cannot read config at {path}: {exc}") from exc
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_provider_config(config: ProviderConfig, path: Optional[Path] = None) -> None:
    """Persist the provider configuration atomically to disk.

    Args:
        config: The configuration to save.
        path: Config file location. Defaults to :func:`get_config_path`.

    Raises:
        ConfigError: If the file cannot be written.
    """
    path = path or get_config_path()
    data = config.model_dump(mode="json")
    try:
        _atomic_write(path, json.dumps(data, indent=2) + "\n")
    except OSError as exc:
        raise ConfigError(f"Cannot write config to {path}: {exc}") from exc


def apply_env_overrides(config: ProviderConfig) -> ProviderConfig:
    """Return a copy of *config* with every set override variable applied.

    Empty variables are ignored so that ``SUPABASE_URL=`` in a shell does
    not blank out the configured URL.
    """
    overrides = {
        field: os.environ[var]
        for var, field in ENV_OVERRIDES.items()
        if os.environ.get(var)
    }
    if not overrides:
        return config
    logger.debug("Config overridden from environment: %s", ", ".join(sorted(overrides)))
    try:
        return ProviderConfig.model_validate({**config.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigError(f"Invalid config override from environment: {exc}") from exc


def resolve_provider_config(
    path: Optional[Path] = None,
    env_file: Optional[Path] = None,
) -> ProviderConfig:
    """Resolve the effective provider config.

    Precedence (high to low):
        1. Environment variables (``SUPABASE_URL``, ``SUPABASE_ANON_KEY``,
           ``GITHUB_CLIENT_ID``)
        2. ``.env`` file (only fills variables not already set)
        3. Config file (``~/.config/supaauth/config.json``)
        4. Defaults

    Args:
        path: Config file location. Defaults to :func:`get_config_path`.
        env_file: ``.env`` file to load. Defaults to ``./.env``.

    Returns:
        The immutable :class:`~supaauth.models.ProviderConfig` for this
        invocation.

    Raises:
        ConfigError: If the file or an override is invalid.
    """
    load_dotenv(dotenv_path=env_file or Path.cwd() / ".env", override=False)
    return apply_env_overrides(load_provider_config(path))
