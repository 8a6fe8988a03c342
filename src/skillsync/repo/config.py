"""User configuration — environment variable > config.toml > default."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import tomlkit
from tomlkit.exceptions import TOMLKitError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

DEFAULTS: dict[str, object] = {
    "timeout": 60,
    "log_level": "warning",
}

ENV_VARS: dict[str, str] = {
    "timeout": "SKILLS_TIMEOUT",
    "log_level": "SKILLS_LOG_LEVEL",
}


@dataclass(frozen=True)
class ConfigValue:
    value: object
    source: Literal["env", "file", "default"]


# ── File location ───────────────────────────────────────────────────


def config_dir() -> Path:
    """XDG config home, LOCALAPPDATA on Windows, else ~/.config."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg:
        return Path(xdg).expanduser() / "skills"
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA", "").strip()
        if local:
            return Path(local) / "skills"
    return Path.home() / ".config" / "skills"


def config_path() -> Path:
    return config_dir() / CONFIG_FILENAME


# ── Serialization ───────────────────────────────────────────────────


def read() -> dict[str, object]:
    """Load config.toml; an absent or invalid file reads as empty."""
    path = config_path()
    if not path.exists():
        return {}
    try:
        doc = tomlkit.loads(path.read_text(encoding="utf-8"))
    except (OSError, TOMLKitError) as exc:
        logger.warning("Invalid config file at %s (%s). Using empty config.", path, exc)
        return {}
    return {key: _plain(value) for key, value in doc.items()}


def write(values: dict[str, object]) -> None:
    path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = tomlkit.document()
    doc.add(tomlkit.comment("skills-sync configuration"))
    for key in sorted(values):
        doc.add(key, values[key])
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


# ── Value operations ────────────────────────────────────────────────


def is_valid_key(key: str) -> bool:
    return key in DEFAULTS


def get_value(key: str) -> ConfigValue:
    if not is_valid_key(key):
        raise KeyError(key)

    env_raw = os.environ.get(ENV_VARS[key])
    if env_raw is not None and validate(key, env_raw) is None:
        return ConfigValue(parse(key, env_raw), "env")
    if env_raw is not None:
        logger.warning("Ignoring invalid %s=%r", ENV_VARS[key], env_raw)

    file_values = read()
    if key in file_values:
        return ConfigValue(file_values[key], "file")

    return ConfigValue(DEFAULTS[key], "default")


def get(key: str) -> object:
    return get_value(key).value


def get_all() -> dict[str, ConfigValue]:
    return {key: get_value(key) for key in DEFAULTS}


def set_value(key: str, raw: str) -> object:
    """Validate and persist *raw* under *key*. Returns the parsed value."""
    warning = validate(key, raw)
    if warning:
        raise ValueError(warning)
    values = read()
    values[key] = parse(key, raw)
    write(values)
    return values[key]


def unset_value(key: str) -> bool:
    """Remove *key* from the file. True if it was present."""
    values = read()
    if key not in values:
        return False
    del values[key]
    write(values)
    return True


def validate(key: str, raw: str) -> str | None:
    """Return a warning for an invalid value, or None if it is acceptable."""
    if not is_valid_key(key):
        return f"Unknown config key: {key}"
    if key == "timeout":
        try:
            seconds = float(raw)
        except ValueError:
            return f"Timeout must be a number, got: {raw}"
        if seconds <= 0:
            return f"Timeout must be a positive number, got: {raw}"
    if key == "log_level" and raw.strip().lower() not in LOG_LEVELS:
        return f"Log level must be one of {', '.join(LOG_LEVELS)}, got: {raw}"
    return None


def parse(key: str, raw: str) -> object:
    if key == "timeout":
        seconds = float(raw)
        return int(seconds) if seconds.is_integer() else seconds
    if key == "log_level":
        return raw.strip().lower()
    return raw


def format_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _plain(value: object) -> object:
    unwrap = getattr(value, "unwrap", None)
    return unwrap() if callable(unwrap) else value
