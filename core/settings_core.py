"""
Settings Core - Runtime Clock Settings.

Reads and changes the settings a user may edit while the service runs:
display zone, zero reference, refresh mode, dial options and offset wrap.
Everything else comes from the environment and needs a restart.
"""

import logging
from typing import Any

from config import (
    get_config,
    get_settings_payload,
    update_runtime_settings,
    validate_runtime_updates,
)

logger = logging.getLogger(__name__)


def get_current_settings() -> dict[str, Any]:
    """Returns the runtime-editable settings with their current values."""
    return get_settings_payload()


def update_settings(payload: Any) -> tuple[bool, list[str]]:
    """
    Validates and persists a partial settings update.

    Nothing is written unless every key in the payload is valid. Values equal
    to the current ones are dropped before saving.

    Args:
        payload: Mapping of setting key to new value

    Returns:
        Tuple of (success, list of error messages)
    """
    if not isinstance(payload, dict):
        return False, ["Invalid payload format"]

    valid, errors = validate_runtime_updates(payload)
    if errors:
        logger.info(f"Rejected settings update: {errors}")
        return False, errors

    current = get_config()
    changed = {k: v for k, v in valid.items() if current.get(k) != v}
    if not changed:
        return True, []

    update_runtime_settings(changed)
    logger.info(f"Runtime settings updated: {sorted(changed)}")
    return True, []
