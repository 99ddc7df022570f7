"""Local key-value settings stored in a JSON file.

Holds per-machine overrides (e.g. the VIP showcase profile) that take
precedence over the shared configuration document in the database.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from fxjournal.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".fxjournal" / "local_settings.json"


class LocalSettings:
    """String key-value store backed by a single JSON file."""

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize local settings.

        Args:
            path: Settings file. Defaults to FXJOURNAL_SETTINGS_PATH or
                  ~/.fxjournal/local_settings.json
        """
        if path is None:
            env_path = os.environ.get("FXJOURNAL_SETTINGS_PATH")
            path = Path(env_path) if env_path else DEFAULT_SETTINGS_PATH
        self.path = path

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot write settings file {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when unset or empty."""
        return self._load().get(key) or None

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, *keys: str) -> None:
        """Remove keys; missing keys are ignored."""
        data = self._load()
        if not any(k in data for k in keys):
            return
        for key in keys:
            data.pop(key, None)
        self._save(data)
