"""Configuration helpers for the company import tool."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in '{file_path}': {exc}") from exc
    else:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in '{file_path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping")
    return data


@dataclass
class ImportSettings:
    """Runtime settings for the import client and the bulk import server."""

    endpoint_url: Optional[str] = None
    api_token: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    default_owner_id: Optional[str] = None
    acting_user_id: Optional[str] = None
    database_url: Optional[str] = None
    roster: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "ImportSettings":
        try:
            timeout = float(config.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("'timeout_seconds' must be a number") from exc
        if timeout <= 0:
            raise ConfigurationError("'timeout_seconds' must be positive")

        roster = config.get("roster") or []
        if not isinstance(roster, list):
            raise ConfigurationError("'roster' must be a list of {id, name, role} entries")

        settings = cls(
            endpoint_url=_optional_text(config.get("endpoint_url")),
            api_token=_optional_text(config.get("api_token")),
            timeout_seconds=timeout,
            default_owner_id=_optional_text(config.get("default_owner_id")),
            acting_user_id=_optional_text(config.get("acting_user_id")),
            database_url=_optional_text(config.get("database_url")),
            roster=list(roster),
        )
        if not settings.endpoint_url and not settings.database_url:
            LOGGER.debug("No endpoint_url or database_url configured; submission is disabled")
        return settings

    @property
    def uses_remote_endpoint(self) -> bool:
        return bool(self.endpoint_url)


def load_settings(path: str | Path) -> ImportSettings:
    return ImportSettings.from_mapping(load_configuration(path))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["ConfigurationError", "ImportSettings", "load_configuration", "load_settings"]
