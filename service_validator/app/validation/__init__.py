"""
Token validation package.

Validates opaque bearer tokens by calling a configured HTTP resource with
an ``Authorization: Bearer`` header, and caches the outcome:

- Accepted tokens are cached with the owner they were validated for.
- Rejected tokens (non-200, or a claimed owner that does not match) are
  cached separately so they are not re-checked until their entry expires.
- Response bodies are parsed into an explicit result; a body that cannot
  be parsed switches the validator to uncached pass-through for good.

Transport failures are the only errors raised to callers.
"""

from .models import ParseResult, RemoteIdentity, TokenInfo, TokenRecord
from .response_parser import parse_validation_body
from .token_validator import TokenValidator

__all__ = [
    "ParseResult",
    "RemoteIdentity",
    "TokenInfo",
    "TokenRecord",
    "TokenValidator",
    "parse_validation_body",
]
