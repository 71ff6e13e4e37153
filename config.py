"""Configuration from environment variables (a local .env file is loaded first)."""

import logging
import os

from dotenv import load_dotenv

from portal import FetchPetConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_DOWNLOAD_DIR = "/tmp/fetchpet-downloads"
DEFAULT_BASE_URL = "https://my.fetchpet.com"


def load_config() -> FetchPetConfig:
    """Build the portal config. Raises ValueError if credentials are missing or TIMEOUT is not a number."""
    load_dotenv()
    username = os.environ.get("FETCHPET_USERNAME")
    password = os.environ.get("FETCHPET_PASSWORD")
    if not username or not password:
        raise ValueError("FETCHPET_USERNAME and FETCHPET_PASSWORD environment variables must be configured")

    headless = os.environ.get("HEADLESS", "true").lower() != "false"
    timeout_raw = os.environ.get("TIMEOUT")
    try:
        timeout_ms = int(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_MS
    except ValueError:
        raise ValueError(f"TIMEOUT must be a number of milliseconds, got {timeout_raw!r}") from None
    download_dir = os.environ.get("FETCHPET_DOWNLOAD_DIR") or DEFAULT_DOWNLOAD_DIR
    base_url = os.environ.get("FETCHPET_BASE_URL") or DEFAULT_BASE_URL

    if not headless:
        logger.warning("Running in non-headless mode - browser window will be visible")
    if timeout_raw:
        logger.warning("Custom timeout configured: %sms", timeout_ms)
    if os.environ.get("FETCHPET_DOWNLOAD_DIR"):
        logger.warning("Custom download directory: %s", download_dir)

    return FetchPetConfig(
        username=username,
        password=password,
        headless=headless,
        timeout_ms=timeout_ms,
        download_dir=download_dir,
        base_url=base_url,
    )
