"""
Tests for operator configuration and the config validator.
"""

from __future__ import annotations

import pytest

from outrider.config import Annotations, ConfigValidator, CrdTarget, OperatorConfig, parse_bool
from outrider.errors import ConfigurationError


class TestParseBool:

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("TRUE", False),
        ("True", False),
        (" true", False),
        ("1", False),
        ("yes", False),
        ("false", False),
        ("", False),
        (None, False),
    ])
    def test_only_true_is_true(self, value, expected):
        assert parse_bool(value) is expected


class TestOperatorConfig:

    def test_missing_namespace_fails(self):
        with pytest.raises(ConfigurationError, match="DEFAULT_TARGET_NAMESPACE"):
            OperatorConfig.from_env({})

    def test_blank_namespace_fails(self):
        with pytest.raises(ConfigurationError):
            OperatorConfig.from_env({"DEFAULT_TARGET_NAMESPACE": "  "})

    def test_defaults(self):
        config = OperatorConfig.from_env({"DEFAULT_TARGET_NAMESPACE": "synced"})

        assert config.default_target_namespace == "synced"
        assert config.testing_mode is False
        assert config.credentials_namespace == "cattle-system"
        assert config.request_timeout == 30.0
        assert config.event_queue_size == 256
        assert config.health_port == 8080
        assert config.field_manager == "outrider"

    def test_overrides(self):
        config = OperatorConfig.from_env({
            "DEFAULT_TARGET_NAMESPACE": "synced",
            "TESTING_MODE": "true",
            "CLUSTER_CREDENTIALS_NAMESPACE": "fleet-default",
            "REQUEST_TIMEOUT_SECONDS": "2.5",
            "EVENT_QUEUE_SIZE": "16",
            "HEALTH_PORT": "0",
        })

        assert config.testing_mode is True
        assert config.credentials_namespace == "fleet-default"
        assert config.request_timeout == 2.5
        assert config.event_queue_size == 16
        assert config.health_port == 0

    def test_bad_numbers_fall_back(self):
        config = OperatorConfig.from_env({
            "DEFAULT_TARGET_NAMESPACE": "synced",
            "REQUEST_TIMEOUT_SECONDS": "soon",
            "EVENT_QUEUE_SIZE": "-4",
        })

        assert config.request_timeout == 30.0
        assert config.event_queue_size == 256

    def test_summary_mentions_namespace(self):
        config = OperatorConfig(default_target_namespace="synced")
        assert "default_target_namespace=synced" in config.summary()


class TestConstants:

    def test_annotation_keys(self):
        annotations = Annotations()
        assert annotations.enabled == "outrider.geeko.me/enabled"
        assert annotations.namespace == "outrider.geeko.me/namespace"
        assert annotations.is_operator_key("outrider.geeko.me/whatever")
        assert not annotations.is_operator_key("example.com/outrider.geeko.me")

    def test_crd_target(self):
        assert CrdTarget().api_version == "provisioning.cattle.io/v1"


class TestConfigValidator:

    def test_missing_required(self):
        validator = ConfigValidator(env={})

        status = validator.validate_variable("DEFAULT_TARGET_NAMESPACE")

        assert status.ok is False
        assert status.required is True
        assert validator.is_valid() is False

    def test_valid_environment(self):
        validator = ConfigValidator(env={"DEFAULT_TARGET_NAMESPACE": "synced"})

        assert validator.is_valid() is True
        by_name = {s.variable: s for s in validator.validate_all()}
        assert by_name["DEFAULT_TARGET_NAMESPACE"].effective == "synced"
        assert by_name["CLUSTER_CREDENTIALS_NAMESPACE"].effective == "cattle-system"
        assert by_name["TESTING_MODE"].is_set is False

    def test_testing_mode_normalized(self):
        validator = ConfigValidator(env={"TESTING_MODE": "yes"})

        assert validator.validate_variable("TESTING_MODE").effective == "false"

    def test_bad_number_flagged(self):
        validator = ConfigValidator(env={
            "DEFAULT_TARGET_NAMESPACE": "synced",
            "HEALTH_PORT": "eighty",
        })

        status = validator.validate_variable("HEALTH_PORT")

        assert status.ok is False
        assert status.effective == "8080"
        # Optional variables never make the environment invalid
        assert validator.is_valid() is True

    def test_to_dict(self):
        status = ConfigValidator(env={}).validate_variable("EVENT_QUEUE_SIZE")

        assert status.to_dict() == {
            "variable": "EVENT_QUEUE_SIZE",
            "required": False,
            "set": False,
            "effective": "256",
            "ok": True,
            "guidance": status.guidance,
        }
