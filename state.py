"""Configuration management for the Dishdash rotator dashboard.

Provides:
- Built-in defaults merged with an optional JSON config file
- Thread-safe access
- Saving command-line overrides back to the file (atomic writes)
- Typed accessors for the values the poll loop and web surface need

ENV:
- DISHDASH_CONFIG: optional absolute/relative path to the config.json to use.
  If unset, defaults to a file next to this module.
"""

from __future__ import annotations

import json
import os
import logging
from threading import RLock
from typing import Any, Dict, Optional


DEFAULT_CONFIG: Dict[str, Any] = {
    "DEVICE_URL": "http://discoverydish.local",
    "POLL_INTERVAL_SEC": 0.25,
    "POLL_TIMEOUT_SEC": None,          # no timeout: a hung poll just never updates
    "COMMAND_TIMEOUT_SEC": 5.0,
    "STRICT_TICK_ORDER": True,         # apply only the newest issued tick
    "LOG_CAPACITY": 100_000,
    "SKYPLANE_WIDTH": 400,
    "SKYPLANE_HEIGHT": 400,
    "SKYPLANE_MARGIN": 20,
    "HTTP_HOST": "0.0.0.0",
    "HTTP_PORT": 5000,
}


def default_config_path() -> str:
    return os.getenv("DISHDASH_CONFIG", os.path.join(os.path.dirname(__file__), "config.json"))


class DashboardConfig:
    """Configuration container for one dashboard process.

    Thread-safety:
        Loading, saving and access are serialized with ``self.lock``. It is an
        RLock because update_config calls save_config under the same lock.

    Persistence:
        Writes are atomic (write to ``.tmp`` then ``os.replace``). Values not
        present in the file fall back to :data:`DEFAULT_CONFIG`.
    """

    def __init__(self, path: Optional[str] = None):
        self.lock: RLock = RLock()
        self._config_file: str = path or default_config_path()
        self._config: Dict[str, Any] = DEFAULT_CONFIG.copy()
        self.load_config()

    @property
    def path(self) -> str:
        return self._config_file

    # ----------------- Load / Save -----------------
    def load_config(self) -> None:
        """Load configuration from JSON, merging into defaults."""
        with self.lock:
            path = self._config_file
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    self._config.update(data)
                else:
                    logging.warning("Config file %s did not contain a JSON object; ignoring.", path)
            except FileNotFoundError:
                # Defaults are enough to run; the file appears on first save
                pass
            except json.JSONDecodeError as err:
                logging.warning("Failed to parse JSON from %s: %s", path, err)
            except OSError as err:
                logging.warning("Failed to load config %s: %s", path, err)

    def save_config(self) -> None:
        """Persist configuration to JSON atomically."""
        with self.lock:
            path = self._config_file
            tmp_path = f"{path}.tmp"
            try:
                os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(self._config, f, indent=2, sort_keys=True)
                os.replace(tmp_path, path)
                logging.info("Config saved to %s.", path)
            except OSError as err:
                try:
                    if os.path.exists(tmp_path):
                        os.remove(tmp_path)
                except OSError:
                    pass
                logging.error("Failed to save config to %s: %s", path, err)

    # ----------------- Access -----------------
    def get_config(self, key: str) -> Any:
        """Retrieve a configuration value (with fallback to defaults)."""
        with self.lock:
            return self._config.get(key, DEFAULT_CONFIG.get(key))

    def update_config(self, mapping: Dict[str, Any], persist: bool = False) -> None:
        """Update multiple values; write the file once if `persist` is set."""
        with self.lock:
            self._config.update(mapping)
            if persist:
                self.save_config()

    # ----------------- Typed accessors -----------------
    def _float(self, key: str, minimum: Optional[float] = None) -> float:
        default = DEFAULT_CONFIG[key]
        try:
            value = float(self.get_config(key))
        except (TypeError, ValueError):
            logging.warning("Config '%s' is not a number. Using default: %s", key, default)
            return float(default)
        if minimum is not None and value < minimum:
            logging.warning("Config '%s'=%s below %s. Using default: %s", key, value, minimum, default)
            return float(default)
        return value

    @property
    def device_url(self) -> str:
        return str(self.get_config("DEVICE_URL")).rstrip("/")

    @property
    def poll_interval(self) -> float:
        return self._float("POLL_INTERVAL_SEC", minimum=0.01)

    @property
    def poll_timeout(self) -> Optional[float]:
        value = self.get_config("POLL_TIMEOUT_SEC")
        if value is None:
            return None
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            logging.warning("Config 'POLL_TIMEOUT_SEC' is not a number. Polling without timeout.")
            return None

    @property
    def command_timeout(self) -> float:
        return self._float("COMMAND_TIMEOUT_SEC", minimum=0.0)

    @property
    def strict_tick_order(self) -> bool:
        return bool(self.get_config("STRICT_TICK_ORDER"))

    @property
    def log_capacity(self) -> int:
        return int(self._float("LOG_CAPACITY", minimum=1))

    @property
    def skyplane_size(self) -> tuple[int, int, float]:
        """(width, height, margin) of the skyplane canvas in pixels."""
        return (
            int(self._float("SKYPLANE_WIDTH", minimum=1)),
            int(self._float("SKYPLANE_HEIGHT", minimum=1)),
            self._float("SKYPLANE_MARGIN", minimum=0),
        )
