"""
Tests for the outrider CLI.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from outrider.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("outrider.main.setup_logging"):
        yield


class TestCheckConfig:

    def test_valid(self, runner, monkeypatch):
        monkeypatch.setenv("DEFAULT_TARGET_NAMESPACE", "synced")

        result = runner.invoke(cli, ["check-config"])

        assert result.exit_code == 0
        assert "DEFAULT_TARGET_NAMESPACE" in result.output
        assert "Configuration is valid" in result.output

    def test_missing_namespace_exits_1(self, runner, monkeypatch):
        monkeypatch.delenv("DEFAULT_TARGET_NAMESPACE", raising=False)

        result = runner.invoke(cli, ["check-config"])

        assert result.exit_code == 1
        assert "Configuration is invalid" in result.output

    def test_json(self, runner, monkeypatch):
        monkeypatch.setenv("DEFAULT_TARGET_NAMESPACE", "synced")

        result = runner.invoke(cli, ["check-config", "--json"])

        data = json.loads(result.output)
        assert data["valid"] is True
        names = [v["variable"] for v in data["variables"]]
        assert "CLUSTER_CREDENTIALS_NAMESPACE" in names


class TestRun:

    def test_missing_namespace_exits_1(self, runner, monkeypatch):
        monkeypatch.delenv("DEFAULT_TARGET_NAMESPACE", raising=False)

        with patch("outrider.operator.Operator") as operator_cls:
            result = runner.invoke(cli, ["run"])

        assert result.exit_code == 1
        operator_cls.assert_not_called()

    def test_runs_operator(self, runner, monkeypatch):
        monkeypatch.setenv("DEFAULT_TARGET_NAMESPACE", "synced")

        with patch("outrider.operator.Operator") as operator_cls, \
                patch("outrider.main.signal.signal"), \
                patch("outrider.main.ConfigValidator") as validator_cls:
            result = runner.invoke(cli, ["run", "--health-port", "0"])

        assert result.exit_code == 0
        validator_cls.return_value.log_status.assert_called_once()
        config = operator_cls.call_args.args[0]
        assert config.default_target_namespace == "synced"
        assert config.health_port == 0
        operator_cls.return_value.run.assert_called_once()


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "outrider" in result.output
