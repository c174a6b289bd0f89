"""
apitest config - Harness configuration.

Values are merged with the following precedence (later overrides earlier):

1. Field defaults on :class:`HarnessConfig`
2. ``.env`` file (read with python-dotenv)
3. Environment variables (``APITEST_*`` prefix)
4. Keyword overrides passed to :func:`load_config`

The active config is process-wide; :class:`override_settings` swaps
fields for the duration of a block or a decorated test.
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

from dotenv import dotenv_values

from .faults import ConfigInvalidFault


@dataclass(frozen=True)
class HarnessConfig:
    """
    Settings shared by every harness invocation.

    Attributes:
        base_url: Scheme and host placed in synthetic ASGI scopes.
        default_headers: Headers sent with every synthetic request.
        raise_handler_exceptions: Re-raise exceptions escaping the handler.
            When ``False`` they are logged and recorded as a 500 response.
        body_preview_limit: Max characters of a body quoted in failure messages.
        log_level: Level applied to the ``apitest`` logger.
    """

    base_url: str = "http://testserver"
    default_headers: Dict[str, str] = field(default_factory=dict)
    raise_handler_exceptions: bool = True
    body_preview_limit: int = 200
    log_level: str = "WARNING"

    def __post_init__(self):
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise ConfigInvalidFault("base_url", f"expected http(s)://host, got {self.base_url!r}")
        if not isinstance(self.default_headers, dict):
            raise ConfigInvalidFault("default_headers", "expected a mapping of header names to values")
        if not isinstance(self.raise_handler_exceptions, bool):
            raise ConfigInvalidFault("raise_handler_exceptions", "expected true or false")
        if not isinstance(self.body_preview_limit, int) or self.body_preview_limit <= 0:
            raise ConfigInvalidFault("body_preview_limit", "expected a positive integer")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigInvalidFault("log_level", f"unknown level {self.log_level!r}")

    @property
    def scheme(self) -> str:
        return urlsplit(self.base_url).scheme

    @property
    def server(self) -> tuple[str, int]:
        parts = urlsplit(self.base_url)
        port = parts.port or (443 if parts.scheme == "https" else 80)
        return (parts.hostname or "testserver", port)

    def replace(self, **changes: Any) -> "HarnessConfig":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


_FIELDS = {f.name for f in dataclasses.fields(HarnessConfig)}


def load_config(
    env_prefix: str = "APITEST_",
    env_file: Optional[str] = None,
    **overrides: Any,
) -> HarnessConfig:
    """
    Build a :class:`HarnessConfig` from ``.env``, environment and overrides.

    Unknown ``APITEST_*`` keys are ignored; unknown keyword overrides
    raise :class:`ConfigInvalidFault`.
    """
    data: Dict[str, Any] = {}

    if env_file is not None:
        for key, value in dotenv_values(env_file).items():
            if value is not None:
                _collect(data, key, value, env_prefix)

    for key, value in os.environ.items():
        _collect(data, key, value, env_prefix)

    for key, value in overrides.items():
        if key not in _FIELDS:
            raise ConfigInvalidFault(key, "not a harness setting")
        data[key] = value

    return HarnessConfig(**data)


def _collect(data: Dict[str, Any], key: str, value: str, prefix: str) -> None:
    if not key.startswith(prefix):
        return
    name = key[len(prefix):].lower()
    if name in _FIELDS:
        data[name] = _parse_value(value)


def _parse_value(value: str) -> Any:
    """Parse string value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    if value.startswith(("{", "[")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def configure_logging(config: HarnessConfig) -> None:
    """Apply ``config.log_level`` to the ``apitest`` logger. No handlers are added."""
    logging.getLogger("apitest").setLevel(str(config.log_level).upper())


# -----------------------------------------------------------------------
# Module-level active config
# -----------------------------------------------------------------------

_active_config: Optional[HarnessConfig] = None


def get_config() -> HarnessConfig:
    """Return the active config, loading it from the environment on first use."""
    global _active_config
    if _active_config is None:
        set_config(load_config())
    return _active_config


def set_config(cfg: Optional[HarnessConfig]) -> None:
    """Install *cfg* as the active config (``None`` reloads on next use)."""
    global _active_config
    _active_config = cfg
    if cfg is not None:
        configure_logging(cfg)


# -----------------------------------------------------------------------
# override_settings – Context manager / decorator
# -----------------------------------------------------------------------

class override_settings:
    """
    Temporarily override harness settings.

    Context manager::

        with override_settings(raise_handler_exceptions=False):
            ...

    Decorator::

        @override_settings(body_preview_limit=50)
        def test_preview():
            ...
    """

    def __init__(self, **overrides: Any):
        unknown = set(overrides) - _FIELDS
        if unknown:
            raise ConfigInvalidFault(sorted(unknown)[0], "not a harness setting")
        self._overrides = overrides
        self._saved: Optional[HarnessConfig] = None

    def __enter__(self):
        self._apply()
        return self

    def __exit__(self, *exc_info):
        self._restore()

    def __call__(self, func: Callable):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                self._apply()
                try:
                    return await func(*args, **kwargs)
                finally:
                    self._restore()

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            self._apply()
            try:
                return func(*args, **kwargs)
            finally:
                self._restore()

        return sync_wrapper

    def _apply(self):
        self._saved = get_config()
        set_config(self._saved.replace(**self._overrides))

    def _restore(self):
        if self._saved is not None:
            set_config(self._saved)
            self._saved = None


__all__ = [
    "HarnessConfig",
    "load_config",
    "configure_logging",
    "get_config",
    "set_config",
    "override_settings",
]
