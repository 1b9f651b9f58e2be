import os
from pathlib import Path
from typing import Any

import yaml

SETTINGS_FILENAME = "settings.yaml"


def get_settings_path(output_dir: str = None) -> Path:
    """Returns OUTPUT_DIR/settings.yaml."""
    if output_dir is None:
        from config import get_config

        output_dir = get_config()["OUTPUT_DIR"]
    return Path(output_dir) / SETTINGS_FILENAME


def load_settings_yaml(output_dir: str = None) -> dict[str, Any]:
    """Reads persisted runtime settings. Missing, empty or broken files yield {}."""
    try:
        text = get_settings_path(output_dir).read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def save_settings_yaml(settings_dict: dict[str, Any], output_dir: str = None) -> None:
    """Writes the settings to a temp file, then swaps it into place."""
    path = get_settings_path(output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".yaml.tmp")
    with tmp_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(settings_dict, handle, sort_keys=True, default_flow_style=False)
    os.replace(tmp_path, path)
