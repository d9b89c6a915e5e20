"""Persisted provider settings.

The settings are a single flat JSON blob holding one ``AIConfig``. It is read
at startup and rewritten on every change. A missing or unreadable file
falls back to the defaults and is never treated as an error.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..llm.models import DEFAULT_CONFIG, AIConfig, ServiceProvider

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "WUKAN_CONFIG_PATH"

# Environment variable -> AIConfig field
ENV_OVERRIDES = {
    "WUKAN_PROVIDER": "provider",
    "WUKAN_API_KEY": "api_key",
    "WUKAN_MODEL": "model_name",
    "WUKAN_BASE_URL": "base_url",
}


def default_settings_path() -> Path:
    """Return the settings file path (``$WUKAN_CONFIG_PATH`` or ``~/.wukan/config.json``)."""
    override = os.getenv(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".wukan" / "config.json"


def apply_env_overrides(config: AIConfig, environ: Mapping[str, str] | None = None) -> AIConfig:
    """Overlay ``WUKAN_*`` environment variables on a config.

    Overrides apply to the runtime snapshot only; they are never saved.

    Raises:
        ValueError: If WUKAN_PROVIDER names an unknown provider
    """
    env = os.environ if environ is None else environ
    update: dict[str, Any] = {}
    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        if field == "provider":
            try:
                update[field] = ServiceProvider(value.upper())
            except ValueError:
                raise ValueError(
                    f"Unknown provider in {var}: {value}. "
                    f"Supported providers: {', '.join(p.value for p in ServiceProvider)}"
                ) from None
        else:
            update[field] = value
    return config.model_copy(update=update) if update else config


class SettingsStore:
    """JSON-file backed store for the provider config."""

    def __init__(self, path: Path | None = None):
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AIConfig:
        """Read the stored config, falling back to DEFAULT_CONFIG."""
        if not self._path.exists():
            return DEFAULT_CONFIG
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return AIConfig.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, e)
            return DEFAULT_CONFIG

    def save(self, config: AIConfig) -> None:
        """Write the config as the new settings blob."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            config.model_dump_json(by_alias=True, indent=2),
            encoding="utf-8",
        )
        logger.debug("Saved settings to %s", self._path)

    def update(self, provider: ServiceProvider | None = None, **changes: Any) -> AIConfig:
        """Replace the stored config with an edited copy and persist it.

        Switching provider applies that provider's preset first; explicit
        changes then take precedence.
        """
        config = self.load()
        if provider is not None:
            config = config.with_provider(provider)
        changes = {key: value for key, value in changes.items() if value is not None}
        if changes:
            config = config.model_copy(update=changes)
        self.save(config)
        return config
