"""Loading of ``config.yaml`` with ``${VAR}`` placeholders resolved from the environment."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from src.userstore.runtime.config.config_data import ConfigData

# ${NAME}, ${NAME:-default} or ${NAME:?message}
PLACEHOLDER = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<op>:-|:\?)(?P<arg>[^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Resolve every placeholder in ``text``.

    ``${NAME:-default}`` falls back to ``default``; ``${NAME}`` and
    ``${NAME:?message}`` raise ``ValueError`` when ``NAME`` is unset.
    """

    def _resolve(match: re.Match) -> str:
        name, op, arg = match.group("name", "op", "arg")
        value = os.getenv(name)
        if value is not None:
            return value
        if op == ":-":
            return arg
        if op == ":?":
            raise ValueError(f"Required environment variable {name}: {arg}")
        raise ValueError(f"Required environment variable {name} not set")

    return PLACEHOLDER.sub(_resolve, text)


def apply_environment_overrides(env_mode: str) -> None:
    """Promote ``<ENV>_`` prefixed variables to their unprefixed names.

    ``PRODUCTION_DB_HOST`` becomes ``DB_HOST`` when running in production.
    """
    prefix = f"{env_mode.upper()}_"
    promoted = {
        name[len(prefix):]: value
        for name, value in os.environ.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }
    if promoted:
        logger.info("Applying {} overrides: {}", env_mode, sorted(promoted))
    os.environ.update(promoted)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Parse ``file_path`` into ``ConfigData`` after placeholder substitution.

    Only the top-level ``config`` mapping is read.

    Raises:
        ValueError: a required variable is missing, the YAML is malformed,
            or a value fails validation.
        FileNotFoundError: ``file_path`` does not exist.
    """
    content = file_path.read_text(encoding="utf-8")

    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration for environment: {}", env_mode)
    apply_environment_overrides(env_mode)

    try:
        document = yaml.safe_load(substitute_env_vars(content)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not isinstance(document, dict):
        raise ValueError(f"{file_path} must contain a mapping")

    try:
        return ConfigData.model_validate(document.get("config") or {})
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def load_config(file_path: Path = Path("config.yaml")) -> ConfigData:
    """Load configuration from ``file_path``, falling back to defaults when absent."""
    if not file_path.exists():
        logger.warning("{} not found; using default configuration", file_path)
        return ConfigData()
    return load_templated_yaml(file_path)
