"""
Configuration for doogie.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/doogie/config.toml) if exists
3. Environment variables (DOOGIE_*) override file
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ParseConfig:
    """Options handed to the parser."""
    smart: bool = False  # typographic quotes and dashes


@dataclass
class RenderConfig:
    """Options for the CommonMark renderer, passed on to mdformat."""
    hardbreaks: bool = False  # render soft breaks as hard breaks
    number: bool = True  # consecutive ordered list numbers instead of 1. 1. 1.
    wrap: str | int = "keep"  # "keep", "no", or a line width


@dataclass
class Config:
    """Root config with all settings."""
    parse: ParseConfig = field(default_factory=ParseConfig)
    render: RenderConfig = field(default_factory=RenderConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "doogie" / "config.toml"
    return Path.home() / ".config" / "doogie" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
            logger.warning("ignoring unreadable config %s: %s", path, e)

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "parse" in data:
        p = data["parse"]
        if "smart" in p:
            config.parse.smart = bool(p["smart"])

    if "render" in data:
        r = data["render"]
        if "hardbreaks" in r:
            config.render.hardbreaks = bool(r["hardbreaks"])
        if "number" in r:
            config.render.number = bool(r["number"])
        if "wrap" in r:
            config.render.wrap = _wrap(r["wrap"])

    return config


def _wrap(value: str | int) -> str | int:
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if value in ("keep", "no") or (type(value) is int and value > 0):
        return value
    raise ValueError(f"wrap must be 'keep', 'no' or a positive width, got {value!r}")


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "DOOGIE_SMART": ("parse", "smart", bool),
        "DOOGIE_HARDBREAKS": ("render", "hardbreaks", bool),
        "DOOGIE_NUMBER": ("render", "number", bool),
        "DOOGIE_WRAP": ("render", "wrap", _wrap),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError, AttributeError):
                # Bool needs special handling: "true", "1", "yes" -> True
                converted = val.lower() in ("true", "1", "yes") if conv is bool else conv(val)
                setattr(getattr(config, section), attr, converted)

    return config


# Module-level config instance, loaded once on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
