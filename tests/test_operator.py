"""
Tests for Operator wiring and shutdown.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from outrider.operator import Operator
from outrider.watchers import ClusterEventSource, SecretEventSource


@pytest.fixture
def operator(config):
    config.health_port = 0
    with patch("outrider.operator.ManagementCluster"), \
            patch("outrider.operator.CrdGate"):
        yield Operator(config, api_client=MagicMock())


class TestOperator:

    def test_wiring(self, operator):
        assert [type(s) for s in operator.sources] == [SecretEventSource, ClusterEventSource]
        assert operator.health.manager is operator.manager
        assert operator.health.watchers is operator.threads

    def test_stop_before_crd(self, operator):
        operator.gate.wait.return_value = False

        with patch.object(operator.manager, "run") as manager_run:
            operator.run()

        manager_run.assert_not_called()
        assert operator.threads == []
        assert operator.probe_server is None

    def test_run_starts_watchers_then_manager(self, operator):
        operator.gate.wait.return_value = True

        with patch("outrider.operator.pump") as pump_mock, \
                patch.object(operator.manager, "run") as manager_run:
            operator.run()

        manager_run.assert_called_once()
        assert [t.name for t in operator.threads] == ["secret-watcher", "cluster-watcher"]
        assert pump_mock.call_count == 2

    def test_stop_is_idempotent(self, operator):
        with patch.object(operator.manager, "stop") as manager_stop:
            operator.stop()
            operator.stop()

        manager_stop.assert_called_once()
        assert all(source.stopped for source in operator.sources)

    def test_probe_server_started_when_port_set(self, config):
        config.health_port = 18080
        with patch("outrider.operator.ManagementCluster"), \
                patch("outrider.operator.CrdGate"), \
                patch("outrider.operator.ProbeServer") as server_cls:
            op = Operator(config, api_client=MagicMock())
            op.gate.wait.return_value = False
            op.run()

        server_cls.assert_called_once()
        assert server_cls.call_args.kwargs["port"] == 18080
        server_cls.return_value.start.assert_called_once()
        server_cls.return_value.stop.assert_called_once()
