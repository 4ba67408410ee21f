"""Tests for the per-account fetch pipeline and its staleness rules."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from usagebar.core.models import FetchOutcome
from usagebar.core.parsing import apply_usage as real_apply_usage
from usagebar.services.fetching import UsageFetcher
from usagebar.services.notifications import NotificationEngine

from conftest import OTHER_COOKIE, SESSION_COOKIE, make_response, usage_payload


@pytest.fixture
def statuses():
    return []


@pytest.fixture
def fetcher(store, settings, fake_api, notifier, statuses):
    engine = NotificationEngine(store, settings, notifier)
    return UsageFetcher(store, api=fake_api, notifications=engine, on_status=statuses.append, max_workers=2)


def _ok(session=34):
    return FetchOutcome(body=make_response(payload=usage_payload(session=session)).content, status_code=200)


class TestFetchOne:
    def test_success(self, fetcher, store, fake_api, statuses):
        account = store.add("Work", SESSION_COOKIE)

        assert fetcher.fetch_one(account.id) is True

        fake_api.get_usage.assert_called_once_with("org-111", SESSION_COOKIE)
        assert account.session_usage == 34
        assert account.weekly_usage == 12
        assert account.has_fetched_data
        assert not account.is_loading
        assert account.error_message is None
        assert account.last_updated is not None
        assert statuses[-1].percentage == 34

    def test_no_cookie(self, fetcher, store, fake_api):
        account = store.add("Empty", "")
        assert fetcher.fetch_one(account.id) is False
        assert account.error_message == "No cookie set"
        fake_api.get_usage.assert_not_called()

    def test_org_unresolvable(self, fetcher, store, fake_api):
        fake_api.get_bootstrap.return_value = make_response(status_code=401)
        account = store.add("Work", "sessionKey=no-org")

        fetcher.fetch_one(account.id)

        assert account.error_message == "Could not get org ID"
        assert not account.is_loading
        fake_api.get_usage.assert_not_called()

    def test_http_error(self, fetcher, store, fake_api):
        fake_api.get_usage.return_value = make_response(status_code=403)
        account = store.add("Work", SESSION_COOKIE)

        fetcher.fetch_one(account.id)

        assert account.error_message == "HTTP 403"
        assert not account.has_fetched_data

    def test_network_error(self, fetcher, store, fake_api):
        fake_api.get_usage.side_effect = requests.Timeout("slow")
        account = store.add("Work", SESSION_COOKIE)

        fetcher.fetch_one(account.id)

        assert account.error_message == "Network error"

    def test_parse_error_keeps_previous_values(self, fetcher, store, fake_api, notifier):
        account = store.add("Work", SESSION_COOKIE)
        fetcher.fetch_one(account.id)
        notifier.reset_mock()

        fake_api.get_usage.return_value = make_response(content=b"not json")
        fetcher.fetch_one(account.id)

        assert account.error_message == "Parse error"
        assert account.session_usage == 34
        assert account.has_fetched_data
        notifier.assert_not_called()

    def test_error_cleared_on_next_success(self, fetcher, store, fake_api):
        fake_api.get_usage.return_value = make_response(status_code=500)
        account = store.add("Work", SESSION_COOKIE)
        fetcher.fetch_one(account.id)
        assert account.error_message == "HTTP 500"

        fake_api.get_usage.return_value = make_response(payload=usage_payload())
        fetcher.fetch_one(account.id)
        assert account.error_message is None

    def test_notifications_after_success(self, fetcher, store, fake_api, notifier):
        fake_api.get_usage.return_value = make_response(payload=usage_payload(session=80))
        account = store.add("Work", SESSION_COOKIE)

        fetcher.fetch_one(account.id)

        assert notifier.call_count == 3
        assert account.last_notified_threshold == 75

    def test_fetch_at(self, fetcher, store):
        store.add("A", SESSION_COOKIE)
        second = store.add("B", OTHER_COOKIE)
        assert fetcher.fetch_at(1) is True
        assert second.has_fetched_data
        assert fetcher.fetch_at(5) is False


class TestStaleness:
    def test_removed_during_fetch(self, fetcher, store, notifier):
        account = store.add("Work", SESSION_COOKIE)
        survivor = store.add("Home", OTHER_COOKIE)

        pending = fetcher.begin(account.id)
        store.remove(account.id)

        assert fetcher.complete(pending, _ok(session=95)) is False
        assert not survivor.has_fetched_data
        notifier.assert_not_called()

    def test_credential_changed_during_fetch(self, fetcher, store):
        account = store.add("Work", SESSION_COOKIE)

        pending = fetcher.begin(account.id)
        store.update(account.id, credential=OTHER_COOKIE)

        assert fetcher.complete(pending, _ok()) is False
        assert not account.has_fetched_data

    def test_superseded_request(self, fetcher, store):
        account = store.add("Work", SESSION_COOKIE)

        older = fetcher.begin(account.id)
        newer = fetcher.begin(account.id)

        assert fetcher.complete(newer, _ok(session=20)) is True
        assert fetcher.complete(older, _ok(session=70)) is False
        assert account.session_usage == 20

    def test_removal_then_new_account_at_same_position(self, fetcher, store):
        first = store.add("First", SESSION_COOKIE)
        pending = fetcher.begin(first.id)
        store.remove(first.id)
        replacement = store.add("Replacement", OTHER_COOKIE)

        assert fetcher.complete(pending, _ok(session=88)) is False
        assert replacement.session_usage == 0

    def test_begin_unknown_account(self, fetcher):
        assert fetcher.begin("missing") is None


class TestFetchAll:
    def test_fetches_every_account(self, fetcher, store, fake_api, statuses):
        a = store.add("A", SESSION_COOKIE)
        b = store.add("B", OTHER_COOKIE)

        results = fetcher.fetch_all()

        assert results == {a.id: True, b.id: True}
        assert fake_api.get_usage.call_count == 2
        assert statuses[-1].has_data

    def test_one_failure_does_not_affect_others(self, fetcher, store, fake_api):
        def get_usage(org_id, cookie):
            if org_id == "org-222":
                raise requests.ConnectionError("down")
            return make_response(payload=usage_payload(session=60))

        fake_api.get_usage.side_effect = get_usage
        good = store.add("Good", SESSION_COOKIE)
        bad = store.add("Bad", OTHER_COOKIE)
        empty = store.add("Empty", "")

        fetcher.fetch_all()

        assert good.session_usage == 60
        assert good.error_message is None
        assert bad.error_message == "Network error"
        assert empty.error_message == "No cookie set"

    def test_unexpected_exception_is_contained(self, fetcher, store, fake_api):
        fake_api.get_usage.side_effect = RuntimeError("boom")
        account = store.add("Work", SESSION_COOKIE)

        fetcher.fetch_all()

        assert account.error_message == "Network error"
        assert not account.is_loading

    def test_empty_store_publishes_zero(self, fetcher, statuses):
        assert fetcher.fetch_all() == {}
        assert statuses[-1].percentage == 0

    def test_status_is_max_of_accounts(self, fetcher, store, fake_api, statuses):
        responses = {
            "org-111": make_response(payload=usage_payload(session=20)),
            "org-222": make_response(payload=usage_payload(session=65)),
        }
        fake_api.get_usage.side_effect = lambda org_id, cookie: responses[org_id]
        store.add("A", SESSION_COOKIE)
        store.add("B", OTHER_COOKIE)

        fetcher.fetch_all()

        assert statuses[-1].percentage == 65


def test_default_resolver_uses_api(store):
    api = MagicMock()
    api.get_usage.return_value = make_response(payload=usage_payload())
    fetcher = UsageFetcher(store, api=api)
    assert fetcher.resolver.api is api


class TestRoundIsolation:
    def test_overflowing_utilization_does_not_stop_round(self, fetcher, store, fake_api):
        responses = {
            "org-111": make_response(content=b'{"five_hour": {"utilization": 1e400}}'),
            "org-222": make_response(payload=usage_payload(session=60)),
        }
        fake_api.get_usage.side_effect = lambda org_id, cookie: responses[org_id]
        huge = store.add("Huge", SESSION_COOKIE)
        normal = store.add("Normal", OTHER_COOKIE)

        fetcher.fetch_all()

        assert not huge.is_loading
        assert huge.session_usage == 0
        assert not normal.is_loading
        assert normal.session_usage == 60

    def test_failure_while_applying_is_contained(self, fetcher, store, fake_api):
        def flaky_apply(account, report):
            if account.name == "Broken":
                raise RuntimeError("boom")
            real_apply_usage(account, report)

        broken = store.add("Broken", SESSION_COOKIE)
        healthy = store.add("Healthy", OTHER_COOKIE)

        with patch("usagebar.services.fetching.apply_usage", side_effect=flaky_apply):
            results = fetcher.fetch_all()

        assert results[broken.id] is False
        assert broken.error_message == "Parse error"
        assert not broken.is_loading
        assert healthy.has_fetched_data
        assert not healthy.is_loading

    def test_removed_while_request_in_flight(self, fetcher, store, fake_api, notifier):
        doomed = store.add("Doomed", SESSION_COOKIE)
        kept = store.add("Kept", OTHER_COOKIE)
        notifier.reset_mock()

        def get_usage(org_id, cookie):
            if cookie == SESSION_COOKIE:
                store.remove(doomed.id)
                return make_response(payload=usage_payload(session=95))
            return make_response(payload=usage_payload(session=30))

        fake_api.get_usage.side_effect = get_usage

        results = fetcher.fetch_all()

        assert results == {doomed.id: False, kept.id: True}
        assert store.ids() == [kept.id]
        assert kept.session_usage == 30
        assert not kept.is_loading
        assert all("Doomed" not in call.args[0] for call in notifier.call_args_list)
