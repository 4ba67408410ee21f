"""Configuration helpers for request headers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional

from .constants import HEADERS_PATH, SERVICE_URL
from .log import get_logger

logger = get_logger("config")

DEFAULT_HEADERS = {
    'accept': '*/*',
    'content-type': 'application/json',
    'origin': SERVICE_URL,
    'referer': SERVICE_URL,
    'user-agent': (
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    ),
}


def load_headers_config(path: Optional[Path] = None) -> Dict[str, str]:
    """Load default request headers, merged with optional user overrides."""
    path = path or HEADERS_PATH
    headers = DEFAULT_HEADERS.copy()

    if not path.exists():
        return headers

    try:
        with open(path, 'r', encoding='utf-8') as handle:
            overrides = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable header overrides at %s: %s", path, exc)
        return headers

    if not isinstance(overrides, dict):
        logger.warning("Ignoring header overrides at %s: expected a JSON object", path)
        return headers

    headers.update({str(k).lower(): str(v) for k, v in overrides.items()})
    return headers
