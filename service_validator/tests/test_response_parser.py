"""
Unit tests for validation response parsing.
"""

import json

import pytest

from service_validator.app.validation.response_parser import parse_validation_body


class TestParseValidationBody:
    """Test cases for parse_validation_body."""

    @pytest.mark.parametrize("body", [None, "", "   \n"])
    def test_empty_body_parses_to_empty_info(self, body):
        result = parse_validation_body(body)

        assert result.ok
        assert result.info.identity is None
        assert not result.info.has_expiration_hint

    def test_google_style_identity(self):
        body = json.dumps({
            "id": "108000000000000000001",
            "displayName": "Stu",
            "url": "https://plus.google.com/108000000000000000001",
            "kind": "plus#person",
        })

        result = parse_validation_body(body)

        identity = result.info.identity
        assert identity.subject == "108000000000000000001"
        assert identity.display_name == "Stu"
        assert identity.url == "https://plus.google.com/108000000000000000001"

    @pytest.mark.parametrize("key", ["sub", "id", "user_id"])
    def test_subject_aliases(self, key):
        result = parse_validation_body(json.dumps({key: "user-1"}))

        assert result.info.identity.subject == "user-1"

    def test_numeric_subject_is_coerced_to_string(self):
        result = parse_validation_body('{"id": 12345}')

        assert result.info.identity.subject == "12345"

    def test_expiration_hints(self):
        result = parse_validation_body('{"token": "abc", "expires_in": 3600, "expiration": 1700003600}')

        info = result.info
        assert info.identity is None
        assert info.has_expiration_hint
        assert info.expires_in == 3600
        assert info.expiration == 1700003600

    def test_hinted_expiration_uses_earliest_hint_minus_margin(self):
        info = parse_validation_body('{"expires_in": 100, "expiration": 1050}').info

        assert info.hinted_expiration(now=1000, margin=5) == 1045
        assert info.hinted_expiration(now=900, margin=5) == 995

    def test_unrecognized_fields_only(self):
        result = parse_validation_body('{"scope": "email profile", "audience": "client-1"}')

        assert result.ok
        assert result.info.identity is None
        assert not result.info.has_expiration_hint
        assert result.info.hinted_expiration(now=0, margin=5) is None

    def test_empty_subject_is_not_an_identity(self):
        result = parse_validation_body('{"sub": ""}')

        assert result.ok
        assert result.info.identity is None

    @pytest.mark.parametrize("body", [
        "Token is valid",
        "<html><body>OK</body></html>",
        "{not json",
    ])
    def test_non_json_is_unparseable(self, body):
        result = parse_validation_body(body)

        assert not result.ok
        assert result.info is None
        assert "not JSON" in result.error

    @pytest.mark.parametrize("body", ["[1, 2]", '"valid"', "true", "42"])
    def test_non_object_json_is_unparseable(self, body):
        result = parse_validation_body(body)

        assert not result.ok
        assert "expected a JSON object" in result.error

    def test_wrongly_typed_fields_are_unparseable(self):
        result = parse_validation_body('{"sub": "user-1", "expires_in": "soon"}')

        assert not result.ok
        assert "expires_in" in result.error

    def test_non_finite_hint_is_unparseable(self):
        result = parse_validation_body('{"expires_in": NaN}')

        assert not result.ok
