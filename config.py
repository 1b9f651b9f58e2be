# config.py
import logging
import os
import threading
from typing import Any

import pytz
from dotenv import load_dotenv
from PIL import ImageColor

from utils.settings import load_settings_yaml, save_settings_yaml

# Load environment variables from .env file.
load_dotenv()

ZERO_REFERENCE_CHOICES = ("twelve", "three")

# Keys the UI / API may change at runtime (persisted to settings.yaml).
RUNTIME_KEYS = {
    "CLOCK_ZONE",
    "CLOCK_ZERO_REFERENCE",
    "AMBIENT_MODE",
    "SHOW_NUMERALS",
    "ACCENT_COLOR",
    "FRAME_INTERVAL_MS",
    "OFFSET_WRAP_HOURS",
}

logger = logging.getLogger(__name__)

_config: dict[str, Any] | None = None
_config_lock = threading.Lock()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _parse_hosts(value: str) -> list[str]:
    return [h.strip() for h in value.split(",") if h.strip()]


def _defaults() -> dict[str, Any]:
    """
    Loads configuration from environment variables and returns a dictionary.
    """
    wrap_hours = int(float(os.getenv("OFFSET_WRAP_HOURS", 12)))
    if wrap_hours not in (12, 24):
        wrap_hours = 12

    zero_ref = os.getenv("CLOCK_ZERO_REFERENCE", "twelve").strip().lower()
    if zero_ref not in ZERO_REFERENCE_CHOICES:
        zero_ref = "twelve"

    return {
        # General Settings
        "DEBUG_MODE": _env_bool("DEBUG_MODE", "False"),
        "OUTPUT_DIR": os.getenv("OUTPUT_DIR", "/output"),

        # Clock Face
        "CLOCK_ZONE": os.getenv("CLOCK_ZONE", "UTC"),
        "CLOCK_ZERO_REFERENCE": zero_ref,
        "AMBIENT_MODE": _env_bool("AMBIENT_MODE", "False"),
        "SHOW_NUMERALS": _env_bool("SHOW_NUMERALS", "True"),
        "ACCENT_COLOR": os.getenv("ACCENT_COLOR", "#d32f2f"),
        "FRAME_INTERVAL_MS": max(1, int(float(os.getenv("FRAME_INTERVAL_MS", 16)))),
        "CLOCK_IMAGE_SIZE": max(64, int(float(os.getenv("CLOCK_IMAGE_SIZE", 512)))),

        # Time Synchronization
        "NTP_HOSTS": _parse_hosts(os.getenv("NTP_HOSTS", "time.android.com")),
        "NTP_TIMEOUT_S": float(os.getenv("NTP_TIMEOUT_S", 5)),
        "NTP_CACHE_EXPIRATION_S": float(os.getenv("NTP_CACHE_EXPIRATION_S", 3600)),
        "TIME_HTTP_URL": os.getenv("TIME_HTTP_URL", ""),

        # Watch Offset Tracking
        "OFFSET_WRAP_HOURS": wrap_hours,

        # Web Server
        "WEB_HOST": os.getenv("WEB_HOST", "0.0.0.0"),
        "WEB_PORT": int(os.getenv("WEB_PORT", 8050)),
    }


def _load_config() -> dict[str, Any]:
    """Environment defaults overlaid with the persisted runtime settings."""
    cfg = _defaults()
    overrides = {
        k: v for k, v in load_settings_yaml(cfg["OUTPUT_DIR"]).items() if k in RUNTIME_KEYS
    }
    valid, errors = validate_runtime_updates(overrides)
    for error in errors:
        logger.warning(f"Ignoring saved setting: {error}")
    cfg.update(valid)
    return cfg


def load_config() -> dict[str, Any]:
    """Builds a fresh configuration dict (no caching)."""
    return _load_config()


def get_config() -> dict[str, Any]:
    """Returns the cached configuration, loading it on first use."""
    global _config
    with _config_lock:
        if _config is None:
            _config = _load_config()
        return _config


def reset_config_cache() -> None:
    global _config
    with _config_lock:
        _config = None


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def _is_known_zone(value: Any) -> bool:
    # pytz directly: clock.angle_mapper imports logging_config, which reads config.
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        pytz.timezone(value.strip())
    except (pytz.UnknownTimeZoneError, ValueError):
        return False
    return True


def validate_runtime_updates(
    payload: dict[str, Any],
) -> tuple[dict[str, Any], list[str]]:
    """
    Validates a runtime settings payload.

    Returns:
        Tuple of (valid updates, list of error messages).
    """
    valid: dict[str, Any] = {}
    errors: list[str] = []

    for key, value in payload.items():
        if key not in RUNTIME_KEYS:
            errors.append(f"Unknown or read-only setting: {key}")
            continue

        if key == "CLOCK_ZONE":
            if not _is_known_zone(value):
                errors.append(f"Unknown time zone: {value!r}")
                continue
            valid[key] = value.strip()
        elif key == "CLOCK_ZERO_REFERENCE":
            if value not in ZERO_REFERENCE_CHOICES:
                errors.append(
                    f"CLOCK_ZERO_REFERENCE must be one of {', '.join(ZERO_REFERENCE_CHOICES)}"
                )
                continue
            valid[key] = value
        elif key in ("AMBIENT_MODE", "SHOW_NUMERALS"):
            flag = _coerce_bool(value)
            if flag is None:
                errors.append(f"{key} must be a boolean")
                continue
            valid[key] = flag
        elif key == "FRAME_INTERVAL_MS":
            try:
                interval = int(value)
            except (TypeError, ValueError):
                errors.append("FRAME_INTERVAL_MS must be an integer")
                continue
            if interval < 1:
                errors.append("FRAME_INTERVAL_MS must be >= 1")
                continue
            valid[key] = interval
        elif key == "OFFSET_WRAP_HOURS":
            if isinstance(value, bool) or value not in (12, 24):
                errors.append("OFFSET_WRAP_HOURS must be 12 or 24")
                continue
            valid[key] = int(value)
        elif key == "ACCENT_COLOR":
            try:
                ImageColor.getrgb(value.strip())
            except (AttributeError, ValueError):
                errors.append(f"ACCENT_COLOR is not a valid color: {value!r}")
                continue
            valid[key] = value.strip()

    return valid, errors


def update_runtime_settings(updates: dict[str, Any]) -> None:
    """Persists already-validated runtime settings and refreshes the cache."""
    cfg = get_config()
    output_dir = cfg["OUTPUT_DIR"]
    persisted = {
        k: v for k, v in load_settings_yaml(output_dir).items() if k in RUNTIME_KEYS
    }
    persisted.update(updates)
    save_settings_yaml(persisted, output_dir)
    with _config_lock:
        cfg.update(updates)


def get_settings_payload() -> dict[str, Any]:
    """Returns the settings exposed to clients."""
    cfg = get_config()
    return {key: cfg[key] for key in sorted(RUNTIME_KEYS)}


if __name__ == "__main__":
    # For testing purposes, print the configuration
    from pprint import pprint

    pprint(load_config())
