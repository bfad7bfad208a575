"""Centralized configuration for the Stripe subscriptions wrapper."""

# Load .env before Config reads os.getenv(); values already in the
# environment take precedence over the file.
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PATH = Path(os.getenv("STRIPE_SUBSCRIPTIONS_ENV_FILE", ".env"))
if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH, override=False, encoding="utf-8")


LIVE_KEY_PREFIXES = ("sk_live_", "rk_live_")
TEST_KEY_PREFIXES = ("sk_test_", "rk_test_")


class Config:
    """Stripe subscriptions configuration.

    Reads environment variables at instance creation time so that tests and
    embedding applications can change the environment and rebuild it.
    """

    def __init__(self):
        # =========================
        # Stripe
        # =========================
        self._STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "").strip()
        self._STRIPE_API_VERSION = os.getenv("STRIPE_API_VERSION") or None
        self._STRIPE_MAX_NETWORK_RETRIES = int(os.getenv("STRIPE_MAX_NETWORK_RETRIES", "2"))
        self._STRIPE_TIMEOUT_SECONDS = float(os.getenv("STRIPE_TIMEOUT_SECONDS", "80"))

        # =========================
        # Logging
        # =========================
        self._LOG_LEVEL = os.getenv("STRIPE_SUBSCRIPTIONS_LOG_LEVEL", "INFO").upper()
        self._JSON_LOGGING = os.getenv("STRIPE_SUBSCRIPTIONS_JSON_LOGGING", "false").lower() == "true"

        # =========================
        # Monitoring
        # =========================
        self._METRICS_ENABLED = os.getenv("STRIPE_SUBSCRIPTIONS_METRICS_ENABLED", "true").lower() == "true"

    # ===== Properties =====
    @property
    def STRIPE_SECRET_KEY(self) -> str:
        return self._STRIPE_SECRET_KEY

    @property
    def STRIPE_API_VERSION(self) -> Optional[str]:
        return self._STRIPE_API_VERSION

    @property
    def STRIPE_MAX_NETWORK_RETRIES(self) -> int:
        return self._STRIPE_MAX_NETWORK_RETRIES

    @property
    def STRIPE_TIMEOUT_SECONDS(self) -> float:
        return self._STRIPE_TIMEOUT_SECONDS

    @property
    def LOG_LEVEL(self) -> str:
        return self._LOG_LEVEL

    @property
    def JSON_LOGGING(self) -> bool:
        return self._JSON_LOGGING

    @property
    def METRICS_ENABLED(self) -> bool:
        return self._METRICS_ENABLED

    def is_live(self) -> bool:
        """Check if the configured key targets live mode."""
        return self.STRIPE_SECRET_KEY.startswith(LIVE_KEY_PREFIXES)

    def validate(self) -> List[str]:
        """Validate configuration and return list of warnings."""
        warnings = []

        if not self.STRIPE_SECRET_KEY:
            warnings.append("STRIPE_SECRET_KEY not set - subscription calls will fail")
        elif not self.STRIPE_SECRET_KEY.startswith(LIVE_KEY_PREFIXES + TEST_KEY_PREFIXES):
            warnings.append("STRIPE_SECRET_KEY does not look like a Stripe secret or restricted key")
        elif self.is_live():
            warnings.append("STRIPE_SECRET_KEY is a live key - bulk operations affect real customers")

        if self.STRIPE_MAX_NETWORK_RETRIES < 0:
            warnings.append("STRIPE_MAX_NETWORK_RETRIES is negative; the SDK will not retry")

        return warnings


# Global config instance (created AFTER .env is loaded)
config = Config()


def reload_config() -> Config:
    """Rebuild the global config from the current environment."""
    global config
    config = Config()
    return config
