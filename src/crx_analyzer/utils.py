"""
Utility functions for the analyzer
"""

import hashlib
import json
import math
import re
from datetime import datetime
from pathlib import Path

CHROME_ID_RE = re.compile(r'/([a-p]{32})', re.IGNORECASE)
EDGE_ID_RE = re.compile(r'/([a-z0-9]{32})', re.IGNORECASE)


def calculate_sha256(data):
    """SHA-256 hex digest of an in-memory package"""
    return hashlib.sha256(data).hexdigest()


def save_json(data, file_path):
    """Save data to JSON file"""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def get_timestamp():
    """Get current timestamp"""
    return datetime.now().isoformat()


def format_bytes(bytes_size):
    """Format bytes to human readable"""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_size < 1024:
            return f"{bytes_size:.2f} {unit}"
        bytes_size /= 1024
    return f"{bytes_size:.2f} TB"


def round_half_up(value):
    """Round .5 away from zero for non-negative scores (round() would bank to even)"""
    return int(math.floor(value + 0.5))


def extract_extension_id(url):
    """
    Pull the extension ID and store out of a Chrome Web Store or Edge Add-ons URL

    Args:
        url (str): Store listing URL

    Returns:
        tuple: (extension_id, 'chrome' | 'edge'), or None if the URL is not recognised
    """
    if 'chrome.google.com/webstore' in url or 'chromewebstore.google.com' in url:
        match = CHROME_ID_RE.search(url)
        if match:
            return match.group(1).lower(), 'chrome'
    elif 'microsoftedge.microsoft.com/addons' in url:
        match = EDGE_ID_RE.search(url)
        if match:
            return match.group(1).lower(), 'edge'
        # Some Edge links only carry the ID as the last path segment
        last_part = url.rstrip('/').split('/')[-1].split('?')[0]
        if len(last_part) == 32:
            return last_part.lower(), 'edge'
    return None
