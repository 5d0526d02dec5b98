"""
Interpretation of validation endpoint response bodies.
"""

import json
from typing import Optional

import pydantic

from .models import ParseResult, TokenInfo


def parse_validation_body(body: Optional[str]) -> ParseResult:
    """Turn a 200 response body into a :class:`ParseResult`.

    An empty body parses to a ``TokenInfo`` with no fields set. Anything
    that is not a JSON object, or a JSON object whose recognized fields have
    the wrong types, is reported as unparseable.
    """
    if body is None or not body.strip():
        return ParseResult.parsed(TokenInfo())

    try:
        payload = json.loads(body)
    except ValueError as exc:
        return ParseResult.unparseable(f"body is not JSON: {exc}")

    if not isinstance(payload, dict):
        return ParseResult.unparseable(
            f"expected a JSON object, got {type(payload).__name__}"
        )

    try:
        info = TokenInfo.model_validate(payload)
    except pydantic.ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        return ParseResult.unparseable(f"invalid fields: {', '.join(fields)}")

    return ParseResult.parsed(info)
