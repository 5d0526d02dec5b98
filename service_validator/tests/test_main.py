"""
Unit tests for the Validator service.
"""

from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from service_validator.app.adapters.http_transport import HttpxTransport
from service_validator.app.main import ValidatorService, create_app
from shared.config import get_config
from shared.errors import TransportError
from shared.logging import add_service_context
from shared.test_helpers import StubTransport, identity_response, plain_text_response, rejection_response

RESOURCE = "https://auth.example.com/oauth/token_validation"


def make_config(**overrides):
    overrides.setdefault("validation_resource", RESOURCE)
    overrides.setdefault("cache_size", 10)
    overrides.setdefault("cache_ttl_seconds", 300)
    return get_config("validator", 8020, **overrides)


class TestValidatorService:
    """Test cases for ValidatorService."""

    @pytest.fixture
    def transport(self):
        replies = {
            "good-token": identity_response("user-a"),
            "bad-token": rejection_response(),
        }
        return StubTransport(lambda token: replies.get(token, rejection_response()))

    @pytest.fixture
    def service(self, transport):
        return ValidatorService(make_config(), transport)

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "validator"
        assert data["version"] == "1.0.0"

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "validator"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"validation_endpoint": "ok"}

    def test_validate_valid_token(self, client, transport):
        response = client.post("/validate", json={"token": "good-token", "owner_id": "user-a"})

        assert response.status_code == 200
        assert response.json() == {"valid": True, "degraded": False}
        assert transport.call_count == 1

    def test_validate_uses_cache(self, client, transport):
        for _ in range(3):
            response = client.post("/validate", json={"token": "good-token", "owner_id": "user-a"})
            assert response.json()["valid"] is True

        assert transport.call_count == 1

    def test_validate_wrong_owner(self, client):
        response = client.post("/validate", json={"token": "good-token", "owner_id": "user-b"})

        assert response.json()["valid"] is False

    def test_validate_rejected_token(self, client):
        response = client.post("/validate", json={"token": "bad-token"})

        assert response.status_code == 200
        assert response.json()["valid"] is False

    def test_validate_with_ttl(self, client, service):
        client.post("/validate", json={"token": "good-token", "owner_id": "user-a", "ttl_seconds": 30})

        assert service.token_validator.positive_cache.get("good-token") is not None

    @pytest.mark.parametrize("payload", [{}, {"token": ""}, {"token": "t", "ttl_seconds": 0}])
    def test_validate_rejects_malformed_request(self, client, payload):
        response = client.post("/validate", json=payload)

        assert response.status_code == 422

    def test_transport_error_maps_to_bad_gateway(self):
        service = ValidatorService(make_config(), StubTransport(TransportError("connection refused")))
        client = TestClient(service.app)

        response = client.post("/validate", json={"token": "good-token"}, headers={"X-Request-ID": "req-1"})

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "TRANSPORT_ERROR"
        assert data["message"] == "connection refused"
        assert data["request_id"] == "req-1"
        assert response.headers["X-Request-ID"] == "req-1"

    def test_non_ascii_token_maps_to_bad_gateway(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        service = ValidatorService(make_config(), HttpxTransport(client=client))

        response = TestClient(service.app).post("/validate", json={"token": "tök"})

        assert response.status_code == 502
        assert response.json()["code"] == "TRANSPORT_ERROR"

    def test_request_logs_carry_service_name(self, transport):
        with patch("shared.base_service.get_logger") as get_logger:
            ValidatorService(make_config(), transport)

        get_logger.assert_called_once_with("validator.service")
        event = add_service_context(None, "info", {"logger": "validator.service"})
        assert event["service"] == "validator"

    def test_degraded_mode_is_reported(self):
        service = ValidatorService(make_config(), StubTransport(plain_text_response()))
        client = TestClient(service.app)

        response = client.post("/validate", json={"token": "any-token"})

        assert response.json() == {"valid": True, "degraded": True}
        assert client.get("/health").json()["dependencies"] == {"validation_endpoint": "degraded"}

    def test_stats(self, client):
        client.post("/validate", json={"token": "good-token", "owner_id": "user-a"})
        client.post("/validate", json={"token": "bad-token"})

        data = client.get("/stats").json()

        assert data["degraded"] is False
        assert data["positive_cache"]["size"] == 1
        assert data["negative_cache"]["size"] == 1

    def test_invalidate(self, client, transport):
        client.post("/validate", json={"token": "good-token", "owner_id": "user-a"})

        response = client.post("/invalidate", json={"token": "good-token"})
        assert response.json() == {"removed": True}

        client.post("/validate", json={"token": "good-token", "owner_id": "user-a"})
        assert transport.call_count == 2

    def test_metrics_endpoint(self, client):
        client.post("/validate", json={"token": "good-token", "owner_id": "user-a"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'token_validations_total{outcome="valid"} 1.0' in response.text

    def test_create_app(self, transport):
        app = create_app(make_config(), transport)

        assert app.title == "Validator Service"

    def test_identity_binding_from_config(self, transport):
        service = ValidatorService(make_config(identity_binding=True), transport)
        client = TestClient(service.app)

        response = client.post("/validate", json={"token": "good-token"})

        assert response.json()["valid"] is False
        assert transport.call_count == 0


class TestServiceConfig:
    """Configuration loading."""

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TOKEN_VALIDATOR_VALIDATION_RESOURCE", RESOURCE)
        monkeypatch.setenv("TOKEN_VALIDATOR_CACHE_SIZE", "42")
        monkeypatch.setenv("TOKEN_VALIDATOR_CACHE_EXPIRY_MODE", "access")
        monkeypatch.setenv("TOKEN_VALIDATOR_IDENTITY_BINDING", "true")
        monkeypatch.setenv("TOKEN_VALIDATOR_LOG_LEVEL", "DEBUG")

        config = get_config("validator", 8020)

        assert config.validation_resource == RESOURCE
        assert config.cache_size == 42
        assert config.cache_expiry_mode == "access"
        assert config.identity_binding is True
        assert config.log_level == "debug"
        assert config.effective_negative_cache_size == 42
        assert config.effective_negative_cache_ttl == config.cache_ttl_seconds

    def test_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            make_config(cache_size=0)
        with pytest.raises(ValueError):
            make_config(cache_expiry_mode="forever")
