"""Process-wide application context.

The active configuration lives in a ``ContextVar`` so a test (or a request)
can swap it for the duration of a block without touching module globals.
"""

import os
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path

from src.userstore.runtime.config.config_data import ConfigData
from src.userstore.runtime.config.config_template import load_config

CONFIG_PATH_ENV = "USERSTORE_CONFIG"


@dataclass(frozen=True)
class AppContext:
    """Configuration and other app-wide state visible to the current context."""

    config: ConfigData


def _load_default_context() -> AppContext:
    path = Path(os.getenv(CONFIG_PATH_ENV, "config.yaml"))
    return AppContext(config=load_config(path))


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=_load_default_context()
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Make ``context`` current; the token restores the previous one."""
    return _app_context.set(context)


def merge_config(base: ConfigData, override: ConfigData) -> ConfigData:
    """Overlay the explicitly set fields of ``override`` onto ``base``.

    Nested sections merge field by field, so
    ``ConfigData(database=DatabaseConfig(url="sqlite://"))`` only changes
    ``database.url``.
    """
    computed = {"database": {"connection_string"}}
    merged = base.model_dump(exclude=computed)
    stack = [(merged, override.model_dump(exclude=computed, exclude_unset=True))]
    while stack:
        target, changes = stack.pop()
        for key, value in changes.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                stack.append((target[key], value))
            else:
                target[key] = value
    return ConfigData.model_validate(merged)


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Temporarily run with ``config_override`` merged into the current config.

    Example:
        with with_context(ConfigData(database=DatabaseConfig(url="sqlite://"))):
            assert get_config().database.url == "sqlite://"
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    current = get_context()
    token = set_context(replace(current, config=merge_config(current.config, config_override)))
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the whole configuration of the current context."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    return get_context().config
