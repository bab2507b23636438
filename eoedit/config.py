"""Central configuration for the EQF tooling.

Every value has a sensible default and can be overridden through an
environment variable. Getters read the environment on each call so tests
(and long-lived editor sessions) pick up changes without a reimport.
"""
from __future__ import annotations
import logging
import os
from pathlib import Path


def _get_int_env(name: str, default: int, minval: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw)
        if minval is not None and v < minval:
            return default
        return v
    except ValueError:
        return default


def _get_path_env(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return Path(raw.strip()).expanduser()


# ---------------- Config directory ----------------
# Bundled defaults: actions.ini, rules.ini and templates/states/*.eqf
DEFAULT_CONFIG_DIR: Path = Path(__file__).resolve().parent / "assets" / "config"

ENV_CONFIG_DIR = "EQF_CONFIG_DIR"

ACTIONS_FILENAME = "actions.ini"
RULES_FILENAME = "rules.ini"
STATE_TEMPLATES_SUBDIR = Path("templates") / "states"
STATE_TEMPLATE_SUFFIX = ".eqf"


def get_config_dir() -> Path:
    """Directory holding the action/rule schema and the template library.

    Order of precedence:
    1. Environment variable EQF_CONFIG_DIR (if set and non-empty)
    2. DEFAULT_CONFIG_DIR
    """
    return _get_path_env(ENV_CONFIG_DIR, DEFAULT_CONFIG_DIR)


def get_actions_path(config_dir: Path | None = None) -> Path:
    return Path(config_dir or get_config_dir()) / ACTIONS_FILENAME


def get_rules_path(config_dir: Path | None = None) -> Path:
    return Path(config_dir or get_config_dir()) / RULES_FILENAME


def get_state_templates_dir(config_dir: Path | None = None) -> Path:
    return Path(config_dir or get_config_dir()) / STATE_TEMPLATES_SUBDIR


# ---------------- Serialization ----------------
# Spaces used to indent the body of Main/State/random blocks
DEFAULT_INDENT: int = 2


def get_indent() -> int:
    """Indent width for serialized blocks. Var: EQF_INDENT (default 2)."""
    return _get_int_env("EQF_INDENT", DEFAULT_INDENT, minval=0)


# ---------------- Logging ----------------

def get_log_level() -> int:
    """Logging level used by the command line. Var: EQF_LOG_LEVEL (default WARNING)."""
    raw = os.getenv("EQF_LOG_LEVEL", "WARNING").strip().upper()
    level = logging.getLevelName(raw)
    if isinstance(level, int):
        return level
    return logging.WARNING


__all__ = [
    "DEFAULT_CONFIG_DIR", "ENV_CONFIG_DIR",
    "ACTIONS_FILENAME", "RULES_FILENAME", "STATE_TEMPLATES_SUBDIR", "STATE_TEMPLATE_SUFFIX",
    "get_config_dir", "get_actions_path", "get_rules_path", "get_state_templates_dir",
    "DEFAULT_INDENT", "get_indent",
    "get_log_level",
]
