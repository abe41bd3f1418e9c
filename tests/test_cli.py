from unittest.mock import patch

import pytest
from click.testing import CliRunner

from insights_events.cli import cli, parse_attribute
from insights_events.constants import (
    ENV_ACCOUNT_ID,
    ENV_COLLECTOR_HOST,
    ENV_INSERT_KEY,
    EXIT_CODE_INVALID_CONFIGURATION,
    EXIT_CODE_INVALID_INPUT,
    EXIT_CODE_REMOTE_REJECTED,
)
from insights_events.errors import RemoteRejectedError

CREDENTIALS = ["--account-id", "12345", "--insert-key", "secret"]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    for name in (ENV_ACCOUNT_ID, ENV_INSERT_KEY, ENV_COLLECTOR_HOST):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("insights_events.config.main.CONFIG", tmp_path / "config.ini")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def patched_poster(poster):
    with patch("insights_events.client.StandardPoster", return_value=poster):
        yield poster


@pytest.mark.unit
class TestParseAttribute:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("amount=12.5", ("amount", 12.5)),
            ("sku=abc", ("sku", "abc")),
            ("ok=true", ("ok", True)),
            ("tags=[1,2]", ("tags", [1, 2])),
            ("note=a=b", ("note", "a=b")),
            ("empty=", ("empty", "")),
        ],
    )
    def test_values(self, raw, expected):
        assert parse_attribute(raw) == expected


@pytest.mark.unit
class TestSendCommand:

    def test_send(self, runner, patched_poster):
        result = runner.invoke(
            cli, CREDENTIALS + ["send", "Purchase", "amount=12.5", "sku=abc"]
        )

        assert result.exit_code == 0, result.output
        assert "Sent 1 Purchase event" in result.output
        assert patched_poster.bodies == [
            [{"amount": 12.5, "sku": "abc", "eventType": "Purchase"}]
        ]
        assert str(patched_poster.requests[0].url) == (
            "https://insights-collector.newrelic.com/v1/accounts/12345/events"
        )

    def test_collector_host_option(self, runner, patched_poster):
        result = runner.invoke(
            cli,
            CREDENTIALS + ["--collector-host", "collector.example.com", "send", "Ping"],
        )

        assert result.exit_code == 0, result.output
        assert patched_poster.requests[0].url.host == "collector.example.com"

    def test_credentials_from_environment(self, runner, patched_poster, monkeypatch):
        monkeypatch.setenv(ENV_ACCOUNT_ID, "777")
        monkeypatch.setenv(ENV_INSERT_KEY, "env-key")

        result = runner.invoke(cli, ["send", "Ping"])

        assert result.exit_code == 0, result.output
        assert patched_poster.requests[0].headers["X-Insert-Key"] == "env-key"

    def test_bad_attribute(self, runner, patched_poster):
        result = runner.invoke(cli, CREDENTIALS + ["send", "Purchase", "nope"])

        assert result.exit_code == 2
        assert patched_poster.requests == []

    def test_missing_configuration(self, runner, patched_poster):
        result = runner.invoke(cli, ["send", "Purchase"])

        assert result.exit_code == EXIT_CODE_INVALID_CONFIGURATION

    def test_rejected_batch(self, runner, patched_poster):
        patched_poster.error = RemoteRejectedError(500, "Server Error")

        result = runner.invoke(cli, CREDENTIALS + ["send", "Purchase"])

        assert result.exit_code == EXIT_CODE_REMOTE_REJECTED
        assert "Bad Response: 500 - Server Error" in result.output


@pytest.mark.unit
class TestReplayCommand:

    def test_replay_stdin(self, runner, patched_poster):
        lines = "\n".join(
            [
                '{"eventType": "Login", "user": "a"}',
                "",
                '{"user": "b"}',
            ]
        )

        result = runner.invoke(
            cli, CREDENTIALS + ["replay", "--event-type", "Visit"], input=lines
        )

        assert result.exit_code == 0, result.output
        assert "Recorded 2 events" in result.output
        assert patched_poster.bodies == [
            [
                {"eventType": "Login", "user": "a"},
                {"eventType": "Visit", "user": "b"},
            ]
        ]

    def test_replay_file(self, runner, patched_poster, tmp_path):
        source = tmp_path / "events.jsonl"
        source.write_text('{"eventType": "Login"}\n{"eventType": "Logout"}\n')

        result = runner.invoke(cli, CREDENTIALS + ["replay", str(source)])

        assert result.exit_code == 0, result.output
        assert [e["eventType"] for e in patched_poster.bodies[0]] == ["Login", "Logout"]

    def test_replay_threshold_flushes(self, runner, patched_poster):
        lines = "\n".join(f'{{"eventType": "Tick", "n": {n}}}' for n in range(20))

        result = runner.invoke(
            cli, CREDENTIALS + ["--max-buffer-size", "100", "replay"], input=lines
        )

        assert result.exit_code == 0, result.output
        assert len(patched_poster.bodies) > 1
        posted = [e["n"] for body in patched_poster.bodies for e in body]
        assert posted == list(range(20))

    def test_missing_event_type(self, runner, patched_poster):
        result = runner.invoke(cli, CREDENTIALS + ["replay"], input='{"user": "a"}\n')

        assert result.exit_code == EXIT_CODE_INVALID_INPUT

    @pytest.mark.parametrize("line", ["not json", "[1, 2]"])
    def test_invalid_lines(self, runner, patched_poster, line):
        result = runner.invoke(cli, CREDENTIALS + ["replay"], input=line)

        assert result.exit_code == EXIT_CODE_INVALID_INPUT
