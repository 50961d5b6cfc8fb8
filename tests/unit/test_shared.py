"""
Unit tests for shared configuration, errors and metrics.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from shared.errors import ContentRestrictionException, NotFoundError, ServiceError, ValidationError
from shared.metrics import MetricsCollector


class TestConfig:
    """Test cases for service configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CR_COMMUNITY_CONTEXT", raising=False)
        monkeypatch.delenv("CR_PORT", raising=False)
        config = get_config("content_restriction", 8020)

        assert config.service_name == "content_restriction"
        assert config.port == 8020
        assert config.host == "0.0.0.0"
        assert config.community_context is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CR_COMMUNITY_CONTEXT", "true")
        monkeypatch.setenv("CR_LOG_LEVEL", "debug")
        monkeypatch.setenv("CR_FIXTURES_FILE", "/tmp/host.yaml")

        config = get_config("content_restriction", 8020)

        assert config.community_context is True
        assert config.log_level == "debug"
        assert config.fixtures_file == "/tmp/host.yaml"

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("CR_PORT", "9100")

        assert get_config("content_restriction", 8020).port == 9100
        assert get_config("content_restriction", 8020, port=9200).port == 9200

    def test_explicit_overrides(self):
        config = get_config("content_restriction", 9000, message_css_class="paywall")

        assert config.port == 9000
        assert config.message_css_class == "paywall"


class TestErrors:
    """Test cases for the exception hierarchy."""

    @pytest.mark.parametrize("error, code, status", [
        (ValidationError(), "VALIDATION_ERROR", 400),
        (NotFoundError(), "NOT_FOUND", 404),
        (ServiceError(), "SERVICE_ERROR", 500),
    ])
    def test_codes_and_status(self, error, code, status):
        assert isinstance(error, ContentRestrictionException)
        assert error.code == code
        assert error.status_code == status

    def test_to_response(self):
        error = NotFoundError("Post not found", {"post_id": "1"})

        response = error.to_response("req-1")

        assert response.model_dump() == {
            "request_id": "req-1",
            "code": "NOT_FOUND",
            "message": "Post not found",
            "details": {"post_id": "1"},
        }


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    def test_collectors_are_independent(self):
        first = MetricsCollector("content_restriction")
        second = MetricsCollector("content_restriction")

        first.record_access_decision(True, "purchase")

        labels = {"outcome": "granted", "reason": "purchase"}
        assert first.registry.get_sample_value("content_access_decisions_total", labels) == 1.0
        assert second.registry.get_sample_value("content_access_decisions_total", labels) is None

    def test_export(self):
        collector = MetricsCollector("content_restriction")
        collector.record_http_request("GET", "/health", 200, 0.01)
        collector.record_health_check("ok")
        collector.record_error("NOT_FOUND")

        text = collector.export().decode()

        assert "http_requests_total" in text
        assert 'health_check_total{status="ok"} 1.0' in text
        assert collector.registry.get_sample_value(
            "http_requests_total", {"method": "GET", "endpoint": "/health", "status_code": "200"}
        ) == 1.0
        assert collector.registry.get_sample_value(
            "errors_total", {"error_type": "NOT_FOUND", "service": "content_restriction"}
        ) == 1.0

    def test_time_operation(self):
        collector = MetricsCollector("content_restriction")

        with collector.time_operation("content_access_evaluation_seconds"):
            pass

        assert collector.registry.get_sample_value("content_access_evaluation_seconds_count") == 1.0
