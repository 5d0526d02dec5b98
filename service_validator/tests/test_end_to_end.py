"""
End-to-end tests: validator over httpx against the mock validation endpoint.
"""

import pytest
from fastapi.testclient import TestClient

from mocks.validation_endpoint.server import MockValidationEndpoint
from service_validator.app.adapters.http_transport import HttpxTransport
from service_validator.app.validation.token_validator import TokenValidator
from shared.test_helpers import FakeClock

RESOURCE = "http://testserver/oauth/token_validation"


class CountingClient(TestClient):
    """TestClient that counts outgoing requests."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.request_count = 0

    def request(self, *args, **kwargs):
        self.request_count += 1
        return super().request(*args, **kwargs)


@pytest.fixture
def endpoint_client():
    return CountingClient(MockValidationEndpoint().app)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def validator(endpoint_client, clock):
    return TokenValidator(RESOURCE, 10, 300, transport=HttpxTransport(client=endpoint_client), clock=clock)


def test_identity_token_is_cached_for_its_owner(validator, endpoint_client):
    assert validator.is_valid("token-user1", "user1") is True
    assert validator.is_valid("token-user1", "user1") is True
    assert endpoint_client.request_count == 1

    assert validator.is_valid("token-user1", "user2") is False
    assert endpoint_client.request_count == 1


def test_identity_with_expires_in_uses_hint(validator, endpoint_client, clock):
    assert validator.is_valid("token-user2", "user2") is True

    assert validator.positive_cache.get("token-user2").expiration == clock.now + 115

    clock.advance(116)
    validator.is_valid("token-user2", "user2")
    assert endpoint_client.request_count == 2


def test_expiry_only_token(validator, clock):
    assert validator.is_valid("token-expiring", "user1") is True

    record = validator.positive_cache.get("token-expiring")
    assert record.owner_id == "user1"
    assert record.expiration == clock.now + 55


def test_opaque_token_is_valid_but_uncached(validator, endpoint_client):
    assert validator.is_valid("token-opaque") is True
    assert validator.is_valid("token-opaque") is True

    assert endpoint_client.request_count == 2


def test_unknown_token_is_rejected_and_cached(validator, endpoint_client):
    assert validator.is_valid("nope", "user1") is False
    assert validator.is_valid("nope", "user1") is False

    assert endpoint_client.request_count == 1


def test_plain_text_body_degrades_validator(validator, endpoint_client):
    assert validator.is_valid("plain") is True
    assert validator.degraded is True

    assert validator.is_valid("token-user1", "user1") is True
    assert validator.is_valid("token-user1", "user1") is True
    assert validator.is_valid("nope") is False

    assert endpoint_client.request_count == 4
    assert len(validator.positive_cache) == 0
    assert len(validator.negative_cache) == 0
