"""
Models for token validation outcomes and validation endpoint payloads.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class TokenRecord:
    """A cached validation outcome.

    ``expiration`` is absolute, in the validator clock's seconds. Records
    are immutable so a cached record always comes from a single remote call.

    A ``sliding`` record was stamped from the cache TTL alone in access
    mode; its cache entry's last-access clock decides when it goes stale.
    """
    token: str
    expiration: float
    owner_id: Optional[str] = None
    sliding: bool = False

    def is_expired(self, now: float) -> bool:
        return self.expiration <= now


class RemoteIdentity(BaseModel):
    """Who the validation endpoint says the token belongs to."""

    model_config = ConfigDict(frozen=True)

    subject: str
    display_name: Optional[str] = None
    url: Optional[str] = None


class TokenInfo(BaseModel):
    """Recognized fields of a successful validation response body.

    Every field is optional; unknown fields are ignored. ``expires_in`` is
    relative, in seconds. ``expiration`` is an absolute epoch timestamp in
    seconds.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    subject: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("sub", "id", "user_id", "subject"),
    )
    display_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("displayName", "display_name", "name"),
    )
    url: Optional[str] = None
    expires_in: Optional[float] = Field(default=None, allow_inf_nan=False)
    expiration: Optional[float] = Field(default=None, allow_inf_nan=False)

    @property
    def identity(self) -> Optional[RemoteIdentity]:
        if not self.subject:
            return None
        return RemoteIdentity(subject=self.subject, display_name=self.display_name, url=self.url)

    @property
    def has_expiration_hint(self) -> bool:
        return self.expires_in is not None or self.expiration is not None

    def hinted_expiration(self, now: float, margin: float) -> Optional[float]:
        """Absolute expiration implied by the hints, minus the safety margin.

        When both hints are present the earlier one wins.
        """
        candidates = []
        if self.expires_in is not None:
            candidates.append(now + self.expires_in)
        if self.expiration is not None:
            candidates.append(self.expiration)
        if not candidates:
            return None
        return min(candidates) - margin


@dataclass(frozen=True)
class ParseResult:
    """Outcome of interpreting a response body.

    Exactly one of ``info`` and ``error`` is set.
    """
    info: Optional[TokenInfo] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.info is not None

    @classmethod
    def parsed(cls, info: TokenInfo) -> "ParseResult":
        return cls(info=info)

    @classmethod
    def unparseable(cls, reason: str) -> "ParseResult":
        return cls(error=reason)


class ValidationRequest(BaseModel):
    """Request model for the validation endpoint of the service."""
    token: str = Field(min_length=1)
    owner_id: Optional[str] = None
    ttl_seconds: Optional[float] = Field(default=None, gt=0)


class InvalidationRequest(BaseModel):
    """Request model for dropping cached outcomes of a token."""
    token: str = Field(min_length=1)


class ValidationResponse(BaseModel):
    """Response model for the validation endpoint of the service."""
    valid: bool
    degraded: bool = False
