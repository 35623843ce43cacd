"""Application configuration: loads .env, then overrides from settings.json."""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

from ymmybttn.errors import ConfigurationError

# Find the project root (where .env lives)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# Runtime settings file for in-app configuration
_SETTINGS_FILE = _PROJECT_ROOT / "data" / "settings.json"


def _load_settings() -> dict:
    """Load saved runtime settings from JSON file."""
    if _SETTINGS_FILE.exists():
        try:
            return json.loads(_SETTINGS_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def _save_settings(settings: dict):
    """Persist runtime settings to JSON file."""
    _SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    _SETTINGS_FILE.write_text(
        json.dumps(settings, indent=2), encoding="utf-8"
    )


# Load saved settings once at import time
_runtime = _load_settings()


class Config:
    """Central configuration: .env defaults, settings.json overrides."""

    # Paths
    PROJECT_ROOT: Path = _PROJECT_ROOT
    DATABASE_PATH: Path = Path(
        os.getenv("DATABASE_PATH", str(_PROJECT_ROOT / "data" / "ymmybttn.db"))
    )
    DATABASE_BUSY_TIMEOUT: float = float(
        os.getenv("DATABASE_BUSY_TIMEOUT", "5.0")
    )

    # Remote catalog (Supabase PostgREST). Credentials come from .env only.
    CATALOG_URL: str = os.getenv("SUPABASE_URL", "")
    CATALOG_API_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    CATALOG_BEARER_TOKEN: str = os.getenv("SUPABASE_ACCESS_TOKEN", "")
    CATALOG_TIMEOUT: int = int(_runtime.get(
        "catalog_timeout",
        os.getenv("CATALOG_TIMEOUT", "30"),
    ))

    # Product sync (settings.json overrides .env)
    SYNC_ENABLED: bool = _runtime.get("sync_enabled", True)
    SYNC_INTERVAL_MINUTES: int = int(_runtime.get(
        "sync_interval_minutes",
        os.getenv("SYNC_INTERVAL_MINUTES", "60"),
    ))
    LAST_SYNC_TIMESTAMP: str = _runtime.get("last_sync_timestamp", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_catalog_credentials(cls) -> tuple[str, str, str]:
        """Return ``(url, api_key, bearer_token)`` for the catalog service.

        The bearer token falls back to the API key when no separate
        access token is configured.

        Raises
        ------
        ConfigurationError
            If the catalog URL or API key is missing.
        """
        if not cls.CATALOG_URL:
            raise ConfigurationError(
                "SUPABASE_URL not found. Please set it in .env file "
                "or environment variables"
            )
        if not cls.CATALOG_API_KEY:
            raise ConfigurationError(
                "SUPABASE_ANON_KEY not found. Please set it in .env file "
                "or environment variables"
            )
        bearer = cls.CATALOG_BEARER_TOKEN or cls.CATALOG_API_KEY
        return cls.CATALOG_URL.rstrip("/"), cls.CATALOG_API_KEY, bearer

    @classmethod
    def realtime_url(cls) -> str:
        """Websocket URL of the catalog's realtime endpoint."""
        url = cls.CATALOG_URL.rstrip("/")
        url = url.replace("https://", "wss://").replace("http://", "ws://")
        return url + "/realtime/v1/websocket"

    @classmethod
    def update_sync_settings(cls, enabled: bool, interval_minutes: int):
        """Update product sync settings at runtime and persist to disk."""
        cls.SYNC_ENABLED = enabled
        cls.SYNC_INTERVAL_MINUTES = interval_minutes

        settings = _load_settings()
        settings["sync_enabled"] = enabled
        settings["sync_interval_minutes"] = interval_minutes
        _save_settings(settings)

    @classmethod
    def update_catalog_timeout(cls, timeout: int):
        """Update the remote catalog request timeout (seconds) and persist."""
        cls.CATALOG_TIMEOUT = timeout

        settings = _load_settings()
        settings["catalog_timeout"] = timeout
        _save_settings(settings)

    @classmethod
    def update_last_sync(cls, timestamp: str):
        """Record the time of the last successful sync pass."""
        cls.LAST_SYNC_TIMESTAMP = timestamp

        settings = _load_settings()
        settings["last_sync_timestamp"] = timestamp
        _save_settings(settings)
