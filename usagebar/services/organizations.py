"""Resolution of the organization id a usage query must be scoped to."""

from __future__ import annotations

from typing import Optional

import requests

from ..core.cookies import org_id_from_cookie
from ..infrastructure.api import ClaudeWebAPI
from ..log import get_logger

logger = get_logger("organizations")


class OrganizationResolver:
    """
    Finds the organization id for a cookie.

    The cookie itself usually carries it; otherwise the bootstrap endpoint is
    asked once. Failures come back as None and are never retried here.
    """

    def __init__(self, api=ClaudeWebAPI):
        self.api = api

    def resolve(self, cookie: str) -> Optional[str]:
        org_id = org_id_from_cookie(cookie)
        if org_id:
            logger.debug("Found org ID in cookie: %s", org_id)
            return org_id
        return self.fetch_from_bootstrap(cookie)

    def fetch_from_bootstrap(self, cookie: str) -> Optional[str]:
        logger.debug("Fetching bootstrap to get org ID")
        try:
            response = self.api.get_bootstrap(cookie)
        except requests.RequestException as exc:
            logger.warning("Bootstrap request failed: %s", exc)
            return None

        if response.status_code != 200:
            logger.warning("Bootstrap returned HTTP %s", response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Could not parse org ID from bootstrap: body is not JSON")
            return None

        account = data.get("account") if isinstance(data, dict) else None
        org_id = account.get("lastActiveOrgId") if isinstance(account, dict) else None
        if not isinstance(org_id, str) or not org_id:
            logger.warning("Could not parse org ID from bootstrap")
            return None

        logger.debug("Got org ID from bootstrap: %s", org_id)
        return org_id
