"""Configuration management utilities for the voter lookup service.

Provides:
- Config base class (attribute dump for logging)
- KnownValues: enumerated values used for classification and validation
- AppConfig: application settings loaded from environment variables

Provider credentials are only ever read from the environment; there are no
compiled-in defaults for them.
"""

import os as _os
from typing import Any, Dict, Optional


def _env_flag(name: str, default: str) -> bool:
    return _os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional(name: str) -> Optional[str]:
    value = _os.getenv(name, "").strip()
    return value or None


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


class KnownValues:
    """Enumerated values found in the voter data."""

    MALE_VALUES = frozenset({"Male", "पुरुष"})
    FEMALE_VALUES = frozenset({"Female", "स्त्री"})

    # Page size menu offered by the UI; "all" is resolved per result set
    PAGE_SIZE_CHOICES = (50, 100, 200, 500)
    DEFAULT_PAGE_SIZE = 100

    # Leading digits accepted for a local mobile number
    MOBILE_PREFIXES = frozenset("6789")

    COUNTRY_CODE = "91"

    @classmethod
    def gender_class(cls, *values: str) -> Optional[str]:
        """Return "male", "female" or None for the given gender labels."""
        for value in values:
            if value in cls.MALE_VALUES:
                return "male"
            if value in cls.FEMALE_VALUES:
                return "female"
        return None

    @classmethod
    def is_page_size_choice(cls, value: str) -> bool:
        """True if *value* is one of the page size menu entries (or "all")."""
        if value == "all":
            return True
        try:
            return int(value) in cls.PAGE_SIZE_CHOICES
        except (TypeError, ValueError):
            return False


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have defaults so the service starts without any
    configuration; bulk notification stays unavailable until the provider
    credentials are set.

    Environment variables:
        APP_HOST / APP_PORT: API server bind address and port (127.0.0.1 / 8000)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        VOTER_DATA_URL: Remote endpoint returning the voter record set
        VOTER_FETCH_TIMEOUT: Seconds to wait for the record set (default: 90)
        VOTER_LOAD_ON_STARTUP: Fetch records when the app starts (default: 1)
        UPDATE_RELAY_URL: External update relay; empty uses the in-process relay
        UPDATE_TIMEOUT: Seconds to wait for an update (default: 15)
        MESSAGING_PROXY_URL: External messaging proxy; empty uses the in-process proxy
        MESSAGING_TIMEOUT: Seconds to wait for one send through the proxy (default: 30)
        WHATSAPP_API_BASE: Messaging provider base URL
        WHATSAPP_PHONE_NUMBER_ID: Provider line id (no default)
        WHATSAPP_API_KEY: Provider API key (no default)
        PROVIDER_TIMEOUT: Seconds the proxy waits for the provider (default: 120)
        NOTIFY_PAUSE_SECONDS: Pause between two bulk messages (default: 3)
        NOTIFY_MAX_BATCH: Max messages per search result set (default: 20)
        APP_AUTO_NOTIFY: Start a bulk run once per new non-empty search (default: 0)
        NOTIFY_AUTO_DELAY_SECONDS: Wait before an automatic run sends anything (default: 1)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_port = int(_os.getenv("APP_PORT", "8000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.voter_data_url = _os.getenv(
            "VOTER_DATA_URL", "https://xtend.online/Voter/fetch_voter_data1.php"
        )
        self.fetch_timeout = float(_os.getenv("VOTER_FETCH_TIMEOUT", "90"))
        self.load_on_startup = _env_flag("VOTER_LOAD_ON_STARTUP", "1")
        self.update_relay_url = _env_optional("UPDATE_RELAY_URL")
        self.update_timeout = float(_os.getenv("UPDATE_TIMEOUT", "15"))
        self.messaging_proxy_url = _env_optional("MESSAGING_PROXY_URL")
        self.messaging_timeout = float(_os.getenv("MESSAGING_TIMEOUT", "30"))
        self.whatsapp_api_base = _os.getenv(
            "WHATSAPP_API_BASE", "https://waba.xtendonline.com"
        ).rstrip("/")
        self._whatsapp_phone_number_id = _env_optional("WHATSAPP_PHONE_NUMBER_ID")
        self._whatsapp_api_key = _env_optional("WHATSAPP_API_KEY")
        self.provider_timeout = float(_os.getenv("PROVIDER_TIMEOUT", "120"))
        self.notify_pause_seconds = float(_os.getenv("NOTIFY_PAUSE_SECONDS", "3"))
        self.notify_max_batch = int(_os.getenv("NOTIFY_MAX_BATCH", "20"))
        self.auto_notify = _env_flag("APP_AUTO_NOTIFY", "0")
        self.notify_auto_delay_seconds = float(_os.getenv("NOTIFY_AUTO_DELAY_SECONDS", "1"))

    # Credentials are kept out of to_dict() so they never end up in logs.

    @property
    def whatsapp_phone_number_id(self) -> Optional[str]:
        return self._whatsapp_phone_number_id

    @property
    def whatsapp_api_key(self) -> Optional[str]:
        return self._whatsapp_api_key

    @property
    def has_provider_credentials(self) -> bool:
        return bool(self._whatsapp_phone_number_id and self._whatsapp_api_key)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
