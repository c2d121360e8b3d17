"""Layered settings for Polygram.

Layers, lowest first: environment (and .env), an optional YAML/JSON file named
by ``CONFIG_FILE``, then in-process overrides. Tests use the override layer
to flip flags such as ``push_enabled`` or ``master_password``.
"""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

import yaml
from pydantic import ValidationError as SettingsValidationError
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseSettings)

_PARSERS: dict[str, Callable[[str], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.loads,
}


def load_settings_file(path: Path) -> dict[str, Any]:
    """Mapping from a settings file; empty when the file is absent or unusable."""
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        logger.warning("Ignoring settings file %s: expected .yaml, .yml or .json", path)
        return {}
    if not path.is_file():
        logger.debug("No settings file at %s", path)
        return {}
    try:
        data = parser(path.read_text())
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        logger.warning("Ignoring settings file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: top level is %s, not a mapping", path, type(data).__name__)
        return {}
    return data


class ConfigStore(Generic[S]):
    """Current settings snapshot built from env, file and overrides."""

    def __init__(self, settings_cls: type[S], config_file: Optional[str] = None):
        self._settings_cls = settings_cls
        self._file = Path(config_file).expanduser().resolve() if config_file else None
        self._overrides: dict[str, Any] = {}
        self._current: Optional[S] = None
        self._lock = threading.RLock()

    def _file_values(self) -> dict[str, Any]:
        if self._file is None:
            return {}
        values = load_settings_file(self._file)
        unknown = sorted(set(values) - set(self._settings_cls.model_fields))
        if unknown:
            logger.warning("Unknown keys in %s ignored: %s", self._file, ", ".join(unknown))
        return {k: v for k, v in values.items() if k in self._settings_cls.model_fields}

    def _build(self, overrides: dict[str, Any]) -> S:
        layered = {**self._settings_cls().model_dump(), **self._file_values(), **overrides}
        return self._settings_cls(**layered)

    def load_initial(self) -> None:
        """Build the first snapshot. Called once when settings are imported."""
        with self._lock:
            self._current = self._build(self._overrides)

    def get_settings(self) -> S:
        with self._lock:
            if self._current is None:
                self.load_initial()
            return self._current

    def update(self, overrides: dict[str, Any]) -> None:
        """Layer ``overrides`` on top; an invalid value leaves the snapshot unchanged."""
        with self._lock:
            merged = {**self._overrides, **overrides}
            try:
                snapshot = self._build(merged)
            except SettingsValidationError as e:
                logger.warning("Rejected settings override %s: %s", sorted(overrides), e)
                return
            self._overrides = merged
            self._current = snapshot

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides = {}
            self._current = self._build({})
