import copy
import json
import os
from typing import Dict, Any, Optional


def merge_config(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge a partial configuration over a full default one.

    Args:
        defaults: Complete configuration dictionary
        overrides: Partial configuration whose values take precedence

    Returns:
        New merged configuration dictionary
    """
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    The file may be partial; missing keys are filled from the defaults. When
    the path does not exist it is also tried relative to the project root,
    and when neither exists the defaults are returned.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configuration dictionary
    """
    from models.model_definitions import get_default_config

    defaults = get_default_config()
    if not config_path:
        return defaults

    root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    candidates = [config_path, os.path.join(root_dir, config_path)]

    for path in candidates:
        if not os.path.exists(path):
            continue
        try:
            with open(path, 'r') as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Error loading configuration from {path}: {str(e)}")
        if not isinstance(config, dict):
            raise ValueError(f"Configuration in {path} must be a JSON object")
        return merge_config(defaults, config)

    return defaults


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration dictionary
        config_path: Path to save the configuration file
    """
    try:
        directory = os.path.dirname(config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(config_path, 'w') as f:
            json.dump(config, f, indent=4)
    except OSError as e:
        raise ValueError(f"Error saving configuration to {config_path}: {str(e)}")


def get_config_value(config: Dict[str, Any], key_path: str, default: Optional[Any] = None) -> Any:
    """
    Get a value from the configuration using a dot-separated path.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated path to the value (e.g., "harmonics.max_pivots")
        default: Default value to return if the key is not found

    Returns:
        Value from the configuration or default
    """
    keys = key_path.split('.')
    current = config

    try:
        for key in keys:
            current = current[key]
        return current
    except (KeyError, TypeError):
        return default
