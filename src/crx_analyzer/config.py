"""
Configuration loader
Reads optional settings from config.json, falling back to built-in defaults
"""

import copy
import json
from pathlib import Path

USER_AGENT = ('Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
              '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36')

DEFAULT_CONFIG = {
    'downloader': {
        'download_dir': 'downloads',
        'timeout': 30,
        'prodversion': '120.0',
        'user_agent': USER_AGENT,
    },
    'store': {
        'timeout': 10,
        'user_agent': USER_AGENT,
        'accept_language': 'en-US,en;q=0.9',
    },
    'web': {
        'host': '0.0.0.0',
        'port': 8000,
        'max_upload_bytes': 50 * 1024 * 1024,
    },
}


def load_config(config_path="config.json"):
    """
    Load configuration from a JSON file

    Args:
        config_path (str or Path): Location of config.json

    Returns:
        dict: DEFAULT_CONFIG with any sections/keys from the file merged in
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = Path(config_path)

    if not config_path.exists():
        return config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = json.load(f)
    except (OSError, ValueError) as e:
        print(f"[!] Error loading config: {e}")
        return config

    if not isinstance(user_config, dict):
        print("[!] Warning: config.json must contain a JSON object. Using defaults.")
        return config

    for section, values in user_config.items():
        if section in config and isinstance(values, dict):
            config[section].update(values)
        else:
            config[section] = values
    return config
