"""HTTP client for the claude.ai web API."""

from __future__ import annotations

from typing import Dict

import requests

from ..config import load_headers_config
from ..constants import API_BASE_URL


class ClaudeWebAPI:
    """claude.ai client for the bootstrap and organization usage endpoints."""

    BASE_URL = API_BASE_URL
    TIMEOUT = (5, 20)

    @staticmethod
    def _get_headers(cookie: str) -> Dict[str, str]:
        headers = load_headers_config()
        headers["cookie"] = cookie
        return headers

    @staticmethod
    def get_bootstrap(cookie: str) -> requests.Response:
        """Fetch the bootstrap document; only the Cookie header is sent."""
        return requests.get(
            f"{ClaudeWebAPI.BASE_URL}/bootstrap",
            headers={"cookie": cookie},
            timeout=ClaudeWebAPI.TIMEOUT,
        )

    @staticmethod
    def get_usage(org_id: str, cookie: str) -> requests.Response:
        """
        Fetch usage for one organization.

        The response is returned unchecked so callers can report the status
        code of a failed request.
        """
        return requests.get(
            f"{ClaudeWebAPI.BASE_URL}/organizations/{org_id}/usage",
            headers=ClaudeWebAPI._get_headers(cookie),
            timeout=ClaudeWebAPI.TIMEOUT,
        )
