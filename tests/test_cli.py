"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from usagebar.data.preferences import PreferencesStore
from usagebar.data.store import AccountStore
from usagebar.infrastructure.factory import ServiceFactory
from usagebar.presentation.cli import accounts, cli, settings_cmd, usage_cmd

from conftest import OTHER_COOKIE, SESSION_COOKIE


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_factory(monkeypatch, prefs_path, fake_api, notifier):
    """Point every command at a temporary preferences file and fake services."""

    def make_factory():
        return ServiceFactory(prefs_path, api=fake_api, notifier=notifier)

    for module in (accounts, usage_cmd, settings_cmd):
        monkeypatch.setattr(module, "ServiceFactory", make_factory)
        monkeypatch.setattr(module, "acquire_lock", lambda: None)


def _stored(prefs_path):
    store = AccountStore(PreferencesStore(prefs_path))
    store.load()
    return store.all()


class TestAccountCommands:
    def test_add(self, runner, prefs_path):
        result = runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        assert result.exit_code == 0, result.output
        assert "Account Added" in result.output
        assert [acc.name for acc in _stored(prefs_path)] == ["Work"]

    def test_add_prompts_for_cookie(self, runner, prefs_path):
        result = runner.invoke(cli, ["add"], input=f"{SESSION_COOKIE}\n")

        assert result.exit_code == 0, result.output
        assert [acc.name for acc in _stored(prefs_path)] == ["Account 1"]

    def test_add_from_file(self, runner, prefs_path, tmp_path):
        cookie_file = tmp_path / "cookie.txt"
        cookie_file.write_text(SESSION_COOKIE + "\n")

        result = runner.invoke(cli, ["add", "-f", str(cookie_file)])

        assert result.exit_code == 0, result.output
        assert _stored(prefs_path)[0].credential == SESSION_COOKIE

    def test_add_invalid_cookie(self, runner, prefs_path):
        result = runner.invoke(cli, ["add", "--cookie", "foo=bar"])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert _stored(prefs_path) == []

    def test_ls_json(self, runner):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        result = runner.invoke(cli, ["ls", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [item["name"] for item in data] == ["Work"]
        assert "credential" not in data[0]

    def test_ls_empty(self, runner):
        result = runner.invoke(cli, ["ls"])
        assert result.exit_code == 0
        assert "No accounts found" in result.output

    def test_list_alias(self, runner):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])
        result = runner.invoke(cli, ["list", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[0]["name"] == "Work"

    def test_edit(self, runner, prefs_path):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        result = runner.invoke(cli, ["edit", "1", "--name", "Job", "--cookie", OTHER_COOKIE, "--color", "#FF5733"])

        assert result.exit_code == 0, result.output
        (account,) = _stored(prefs_path)
        assert account.name == "Job"
        assert account.credential == OTHER_COOKIE
        assert account.color_hex == "#FF5733"

    def test_edit_rejects_bad_colour(self, runner, prefs_path):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        result = runner.invoke(cli, ["edit", "1", "--color", "[/]"])

        assert result.exit_code == 2
        assert _stored(prefs_path)[0].color_hex is None
        assert runner.invoke(cli, ["ls"]).exit_code == 0

    def test_edit_unknown(self, runner):
        result = runner.invoke(cli, ["edit", "ghost", "--name", "x"])
        assert result.exit_code == 1
        assert "No account found" in result.output

    def test_rm(self, runner, prefs_path):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])
        runner.invoke(cli, ["add", "--name", "Home", "--cookie", OTHER_COOKIE])

        result = runner.invoke(cli, ["rm", "Work", "--yes"])

        assert result.exit_code == 0, result.output
        assert [acc.name for acc in _stored(prefs_path)] == ["Home"]

    def test_rm_needs_confirmation(self, runner, prefs_path):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        result = runner.invoke(cli, ["rm", "1"], input="n\n")

        assert result.exit_code == 1
        assert len(_stored(prefs_path)) == 1

    def test_reset(self, runner, prefs_path):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        result = runner.invoke(cli, ["reset", "--yes"])

        assert result.exit_code == 0, result.output
        assert _stored(prefs_path) == []


class TestUsageCommands:
    def test_usage_json(self, runner):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        result = runner.invoke(cli, ["usage", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["percentage"] == 34
        assert data["accounts"][0]["session"]["utilization"] == 34

    def test_usage_table(self, runner):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])

        result = runner.invoke(cli, ["usage"])

        assert result.exit_code == 0, result.output
        assert "34%" in result.output

    def test_usage_without_accounts(self, runner, fake_api):
        result = runner.invoke(cli, ["usage"])
        assert result.exit_code == 0
        assert "No accounts found" in result.output
        fake_api.get_usage.assert_not_called()

    def test_watch_single_round(self, runner, fake_api):
        runner.invoke(cli, ["add", "--name", "Work", "--cookie", SESSION_COOKIE])
        fake_api.get_usage.reset_mock()

        result = runner.invoke(cli, ["watch", "--rounds", "1"])

        assert result.exit_code == 0, result.output
        fake_api.get_usage.assert_called_once()


class TestSettingsCommands:
    def test_show_defaults(self, runner):
        result = runner.invoke(cli, ["settings"])
        assert result.exit_code == 0, result.output
        assert "Notifications: on" in result.output
        assert "Open at login: off" in result.output

    def test_toggle(self, runner, prefs_path):
        result = runner.invoke(cli, ["settings", "--no-notifications", "--open-at-login"])

        assert result.exit_code == 0, result.output
        data = json.loads(prefs_path.read_text())
        assert data["notifications_enabled"] is False
        assert data["open_at_login"] is True

    def test_test_notify(self, runner, notifier):
        result = runner.invoke(cli, ["test-notify"])
        assert result.exit_code == 0, result.output
        notifier.assert_called_once()

    def test_test_notify_failure(self, runner, notifier):
        notifier.return_value = False
        result = runner.invoke(cli, ["test-notify"])
        assert result.exit_code == 1
