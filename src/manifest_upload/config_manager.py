"""User configuration file management."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_KEYS = ("profile", "region", "endpoint_url", "max_concurrency")


def get_config_path() -> Path:
    """Return the path of the user config file (~/.manifest-upload/config.yaml)."""
    return Path.home() / ".manifest-upload" / "config.yaml"


def load_config(config_path: Path) -> Optional[Dict[str, Any]]:
    """
    Load user defaults from a YAML file.
    
    Args:
        config_path: Path to the config file
        
    Returns:
        The known settings, or None if the file does not exist or is empty
        
    Raises:
        yaml.YAMLError: If the file is not valid YAML
        ValueError: If the file does not hold a mapping
    """
    if not config_path.exists():
        return None
    
    with open(config_path, "r") as f:
        data = yaml.safe_load(f)
    
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping of settings")
    return {key: value for key, value in data.items() if key in CONFIG_KEYS}


def save_config(config_path: Path, config_data: Dict[str, Any]) -> None:
    """Save user defaults as block-style YAML, creating the parent directory."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(config_path, "w") as f:
        yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
