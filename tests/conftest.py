"""
Pytest fixtures for usagebar tests.

Every test gets its own preferences file under tmp_path; network and desktop
notifications are replaced with fakes so nothing leaves the process.
"""

import json
from unittest.mock import MagicMock

import pytest

from usagebar.data.preferences import PreferencesStore, Settings
from usagebar.data.store import AccountStore


SESSION_COOKIE = "sessionKey=sk-ant-abc123; lastActiveOrg=org-111"
OTHER_COOKIE = "sessionKey=sk-ant-def456; lastActiveOrg=org-222"


def make_response(status_code=200, payload=None, content=None):
    """MagicMock shaped like requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    if content is None:
        content = json.dumps(payload if payload is not None else {}).encode()
    response.content = content

    def _json():
        return json.loads(content)

    response.json.side_effect = _json
    return response


def usage_payload(session=34, weekly=12, sonnet=None, session_reset="2026-10-18T15:00:00Z"):
    payload = {
        "five_hour": {"utilization": session, "resets_at": session_reset},
        "seven_day": {"utilization": weekly, "resets_at": "2026-10-22T09:00:00+00:00"},
    }
    if sonnet is not None:
        payload["seven_day_sonnet"] = {"utilization": sonnet, "resets_at": None}
    return payload


@pytest.fixture
def prefs_path(tmp_path):
    return tmp_path / "preferences.json"


@pytest.fixture
def preferences(prefs_path):
    return PreferencesStore(prefs_path)


@pytest.fixture
def settings(preferences):
    return Settings(preferences)


@pytest.fixture
def store(preferences):
    account_store = AccountStore(preferences)
    account_store.load()
    return account_store


@pytest.fixture
def fake_api():
    """API double returning a normal usage payload for every org."""
    api = MagicMock()
    api.get_usage.return_value = make_response(payload=usage_payload())
    api.get_bootstrap.return_value = make_response(payload={"account": {"lastActiveOrgId": "org-boot"}})
    return api


@pytest.fixture
def notifier():
    return MagicMock(return_value=True)
