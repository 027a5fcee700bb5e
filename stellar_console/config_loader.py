"""
YAML configuration overlay for the Stellar Skies Console.

Values in the YAML file override the environment-derived defaults in
``config.py``. String values support ``${VAR}`` and ``${VAR:-default}``
environment variable interpolation.

Example::

    orchestrator:
      max_steps: 5
      timeout_seconds: 20
      planner: llm
    llm:
      model: ${LLM_MODEL:-gemini-2.0-flash}
      api_key: ${GEMINI_API_KEY}
    logging:
      level: DEBUG
"""

import logging
import os
import re
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

SECTIONS = ("orchestrator", "llm", "server", "langfuse")


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars resolved
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a parsed YAML tree."""
    if isinstance(data, str):
        return resolve_env_vars(data)
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    return data


def _coerce(current: Any, value: Any) -> Any:
    """Coerce a YAML value to the type of the field it replaces."""
    if isinstance(current, bool):
        if isinstance(value, str):
            return value.lower() == "true"
        return bool(value)
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    return str(value)


def load_yaml_config(path: str) -> dict:
    """Load and interpolate a YAML configuration file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raise ValueError(f"Configuration file {config_path} is empty")
    if not isinstance(raw_config, dict):
        raise ValueError(f"Configuration file {config_path} must be a mapping")

    return _substitute_env_vars_recursive(raw_config)


def apply_yaml_overrides(target: "Config", path: str) -> "Config":
    """
    Override configuration values with those found in a YAML file.

    Unknown keys are logged and ignored.

    Args:
        target: Configuration to update in place.
        path: Path to the YAML file.

    Returns:
        The updated configuration.
    """
    raw_config = load_yaml_config(path)

    for section_name in SECTIONS:
        section_data = raw_config.get(section_name) or {}
        section = getattr(target, section_name)
        known = {f.name for f in fields(section)}
        for key, value in section_data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {section_name}.{key}")
                continue
            setattr(section, key, _coerce(getattr(section, key), value))

    logging_data = raw_config.get("logging") or {}
    if "level" in logging_data:
        target.log_level = str(logging_data["level"])

    logger.debug(f"Configuration overrides loaded from {path}")
    return target
