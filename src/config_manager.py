# --- START OF FILE config_manager.py ---

import json
import os
import sys
import tempfile # For atomic writes

import paths

def load_config(config_path: str | None = None) -> dict:
    """Loads the configuration from the JSON file."""
    config_path = config_path or paths.USER_CONFIG_FILE_PATH
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config = json.load(f)
                if isinstance(config, dict):
                    return config
                else:
                    print(f"CONFIG: Warning: Config file '{config_path}' does not contain a valid JSON object. Using defaults.", file=sys.stderr)
                    return {}
        except (json.JSONDecodeError, IOError) as e:
            print(f"CONFIG: Error loading config file '{config_path}': {e}. Using defaults.", file=sys.stderr)
            return {}
    return {} # No file yet

def save_config(config: dict, config_path: str | None = None):
    """Saves the configuration dictionary to the JSON file atomically."""
    config_path = config_path or paths.USER_CONFIG_FILE_PATH
    config_dir = os.path.dirname(config_path)
    try:
        os.makedirs(config_dir, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(dir=config_dir)
        with os.fdopen(temp_fd, 'w') as f:
            json.dump(config, f, indent=4)
        os.replace(temp_path, config_path)
    except (IOError, OSError) as e:
        print(f"CONFIG: Error saving config file '{config_path}': {e}", file=sys.stderr)

# --- Setting accessors with defaults ---
_config_cache = None

def _get_cached_config() -> dict:
    """Internal helper to load config only once."""
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache

def reset_cache():
    """Drops the cached config so the next access re-reads the file."""
    global _config_cache
    _config_cache = None

def get_setting(key: str, default=None):
    """Gets a specific setting from the config, returning a default if not found."""
    return _get_cached_config().get(key, default)

def set_setting(key: str, value):
    """Sets a specific setting and saves the entire config."""
    global _config_cache
    config = _get_cached_config()
    config[key] = value
    save_config(config)
    _config_cache = config

def get_bool_setting(key: str, default: bool) -> bool:
    """Gets a boolean setting. Non-boolean values fall back to the default."""
    value = get_setting(key, default)
    if isinstance(value, bool):
        return value
    print(f"CONFIG: Warning: Invalid value {value!r} for '{key}' (expected true/false). Using default: {default}", file=sys.stderr)
    return default

def get_positive_int_setting(key: str, default: int) -> int:
    """Gets a positive integer setting. Invalid or non-positive values fall back to the default."""
    raw_value = get_setting(key, default)
    try:
        value = int(raw_value)
    except (ValueError, TypeError):
        value = 0
    if isinstance(raw_value, bool) or value <= 0:
        print(f"CONFIG: Warning: Invalid value {raw_value!r} for '{key}'. Using default: {default}", file=sys.stderr)
        return default
    return value

# --- END OF FILE config_manager.py ---
