"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.rescache/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Cache config** -- a single :class:`~rescache.models.CacheConfig` JSON
  file, loaded by :func:`load_config` and saved by :func:`save_config`.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables and CLI overrides on top of the file.

File writes use a temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from rescache.exceptions import ConfigError
from rescache.models import CacheConfig

_APP_NAME = "rescache"
_CONFIG_FILENAME = "config.json"

ENV_CODEC = "RESCACHE_CODEC"
ENV_BACKEND = "RESCACHE_BACKEND"
ENV_DIRECTORY = "RESCACHE_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/rescache/`` (default ``~/.config/rescache/``).
    On macOS/Windows: ``~/.rescache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the disk backend's ``responses/`` database. Cached data can be
    safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/rescache/`` (default ``~/.cache/rescache/``).
    On macOS/Windows: ``~/.rescache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX systems. On failure the temp file is removed.
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


# --- Cache config ---


def config_path() -> Path:
    """Path to the config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_config() -> CacheConfig:
    """Load the cache configuration from the config directory.

    Returns:
        The deserialised :class:`~rescache.models.CacheConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = config_path()
    if not path.is_file():
        return CacheConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return CacheConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: CacheConfig) -> None:
    """Persist *config* atomically to the config directory."""
    data = config.model_dump(mode="json")
    _atomic_write(config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(
    cli_codec: Optional[str] = None,
    cli_backend: Optional[str] = None,
    cli_directory: Optional[str] = None,
) -> CacheConfig:
    """Resolve the effective config.

    Precedence (high to low):
        1. CLI flags (``cli_codec``, ``cli_backend``, ``cli_directory``)
        2. Environment variables (``RESCACHE_CODEC``, ``RESCACHE_BACKEND``,
           ``RESCACHE_DIR``)
        3. User config (``~/.config/rescache/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the file is invalid or an override names an unknown
            codec or backend.
    """
    config = load_config()
    overrides: dict[str, str] = {}
    for field, env_var, cli_value in (
        ("codec", ENV_CODEC, cli_codec),
        ("backend", ENV_BACKEND, cli_backend),
        ("directory", ENV_DIRECTORY, cli_directory),
    ):
        env_value = os.environ.get(env_var)
        if env_value:
            overrides[field] = env_value
        if cli_value is not None:
            overrides[field] = cli_value

    if not overrides:
        return config
    try:
        return CacheConfig.model_validate({**config.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigError(f"Invalid cache configuration override: {exc}") from exc
