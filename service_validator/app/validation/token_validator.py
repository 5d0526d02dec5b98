"""
Bearer token validation against a remote endpoint, with outcome caching.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional

import httpx

from shared.config import BaseConfig
from shared.errors import TransportError
from shared.logging import get_logger, token_fingerprint
from shared.metrics import MetricsCollector
from ..adapters.http_transport import HttpTransport, HttpxTransport
from ..caching.outcome_cache import ExpiryMode, OutcomeCache
from .models import TokenInfo, TokenRecord
from .response_parser import parse_validation_body


class TokenValidator:
    """Checks bearer tokens and remembers the answer.

    Accepted tokens go to a positive cache and rejected ones to a negative
    cache, each with its own size and TTL. When a claimed owner is passed to
    :meth:`is_valid`, the token must also belong to that owner; a valid token
    presented by someone else counts as invalid.

    If the endpoint ever answers 200 with a body that cannot be parsed, the
    validator stops parsing and caching for good and just forwards every
    call to the endpoint.
    """

    def __init__(
        self,
        validation_resource: str,
        cache_size: int = 1000,
        cache_ttl_seconds: float = 300.0,
        *,
        transport: Optional[HttpTransport] = None,
        negative_cache_size: Optional[int] = None,
        negative_cache_ttl_seconds: Optional[float] = None,
        expiry_mode: ExpiryMode = ExpiryMode.WRITE,
        identity_binding: bool = False,
        expiry_margin_seconds: float = 5.0,
        request_timeout_seconds: float = 10.0,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.validation_resource = validation_resource
        self.identity_binding = identity_binding
        self.expiry_margin_seconds = expiry_margin_seconds
        self.expiry_mode = ExpiryMode(expiry_mode)
        self.metrics = metrics
        self.logger = get_logger("validator.token_validator")
        self._clock = clock

        self._owns_transport = transport is None
        self.transport = transport if transport is not None else HttpxTransport(timeout=request_timeout_seconds)

        self._positive: OutcomeCache[TokenRecord] = OutcomeCache(
            "positive",
            cache_size,
            cache_ttl_seconds,
            expiry_mode=expiry_mode,
            clock=clock,
        )
        self._negative: OutcomeCache[TokenRecord] = OutcomeCache(
            "negative",
            cache_size if negative_cache_size is None else negative_cache_size,
            cache_ttl_seconds if negative_cache_ttl_seconds is None else negative_cache_ttl_seconds,
            expiry_mode=expiry_mode,
            clock=clock,
        )

        # Guards the degraded flag and every cache write
        self._mode_lock = threading.Lock()
        self._degraded = False

        self.logger.debug(
            "Token validator created",
            validation_resource=validation_resource,
            cache_size=cache_size,
            cache_ttl_seconds=cache_ttl_seconds,
            identity_binding=identity_binding,
        )

    @classmethod
    def from_config(
        cls,
        config: BaseConfig,
        transport: Optional[HttpTransport] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.time,
    ) -> "TokenValidator":
        """Build a validator from settings."""
        return cls(
            config.validation_resource,
            config.cache_size,
            config.cache_ttl_seconds,
            transport=transport,
            negative_cache_size=config.effective_negative_cache_size,
            negative_cache_ttl_seconds=config.effective_negative_cache_ttl,
            expiry_mode=ExpiryMode(config.cache_expiry_mode),
            identity_binding=config.identity_binding,
            expiry_margin_seconds=config.expiry_margin_seconds,
            request_timeout_seconds=config.request_timeout_seconds,
            clock=clock,
            metrics=metrics,
        )

    @property
    def degraded(self) -> bool:
        """True once response parsing and caching have been switched off."""
        return self._degraded

    @property
    def positive_cache(self) -> OutcomeCache[TokenRecord]:
        return self._positive

    @property
    def negative_cache(self) -> OutcomeCache[TokenRecord]:
        return self._negative

    def is_valid(self, token: str, claimed_owner_id: Optional[str] = None, ttl: Optional[float] = None) -> bool:
        """Return whether ``token`` is valid, for ``claimed_owner_id`` if given.

        ``ttl`` shortens the lifetime of any record cached by this call; it
        cannot extend it past the cache TTL.

        Raises:
            TransportError: the validation endpoint could not be reached.
        """
        if self.identity_binding and claimed_owner_id is None:
            self.logger.warning(
                "Identity binding enabled but no owner claimed; rejecting",
                token=token_fingerprint(token),
            )
            self._record_outcome("missing_owner")
            return False

        if not self._degraded:
            cached = self._check_caches(token, claimed_owner_id, ttl)
            if cached is not None:
                return cached

        return self._validate_remotely(token, claimed_owner_id, ttl)

    def _check_caches(self, token: str, claimed_owner_id: Optional[str], ttl: Optional[float]) -> Optional[bool]:
        now = self._clock()

        rejected = self._negative.get(token)
        self._record_lookup("negative", rejected is not None)
        if rejected is not None:
            if not _is_stale(rejected, now):
                self.logger.debug("Token rejection served from cache", token=token_fingerprint(token))
                self._record_outcome("invalid_cached")
                return False
            self._negative.invalidate(token, expected=rejected)

        accepted = self._positive.get(token)
        self._record_lookup("positive", accepted is not None)
        if accepted is None:
            return None

        if _is_stale(accepted, now):
            self._positive.invalidate(token, expected=accepted)
            return None

        # A record without an owner carries no identity to compare against
        if claimed_owner_id is not None and accepted.owner_id not in (None, claimed_owner_id):
            self._reject_mismatch(token, claimed_owner_id, accepted.owner_id, ttl, source="cache")
            return False

        self.logger.debug("Token validation served from cache", token=token_fingerprint(token))
        self._record_outcome("valid_cached")
        return True

    def _validate_remotely(self, token: str, claimed_owner_id: Optional[str], ttl: Optional[float]) -> bool:
        headers = {"Authorization": f"Bearer {token}"}
        response = self._call_endpoint(headers)

        if response.status_code != 200:
            self.logger.info(
                "Token rejected by validation endpoint",
                token=token_fingerprint(token),
                status_code=response.status_code,
            )
            self._store(
                self._negative,
                token,
                claimed_owner_id,
                self._ttl_expiration(self._negative, ttl),
                sliding=self._slides(ttl),
            )
            self._record_outcome("invalid")
            return False

        if self._degraded:
            self._record_outcome("valid_uncached")
            return True

        result = parse_validation_body(response.body)
        if not result.ok:
            self._enter_degraded(result.error)
            self._record_outcome("valid_uncached")
            return True

        return self._accept(token, claimed_owner_id, ttl, result.info)

    def _call_endpoint(self, headers: Dict[str, str]):
        if self.metrics is None:
            return self._send(headers)
        with self.metrics.time_operation("remote_validation_duration_seconds", status="error") as labels:
            response = self._send(headers)
            labels["status"] = str(response.status_code)
        return response

    def _send(self, headers: Dict[str, str]):
        try:
            return self.transport.get(self.validation_resource, headers)
        except TransportError:
            self._record_outcome("transport_error")
            raise
        except (httpx.HTTPError, OSError, UnicodeEncodeError) as exc:
            self.logger.error(
                "Validation endpoint unreachable",
                url=self.validation_resource,
                error=str(exc),
            )
            self._record_outcome("transport_error")
            raise TransportError(
                f"GET {self.validation_resource} failed: {exc}",
                details={"url": self.validation_resource, "error_type": type(exc).__name__}
            ) from exc

    def _accept(self, token: str, claimed_owner_id: Optional[str], ttl: Optional[float], info: TokenInfo) -> bool:
        now = self._clock()
        ttl_expiration = self._ttl_expiration(self._positive, ttl)
        hinted = info.hinted_expiration(now, self.expiry_margin_seconds)

        identity = info.identity
        if identity is not None:
            if claimed_owner_id is not None and identity.subject != claimed_owner_id:
                self._reject_mismatch(token, claimed_owner_id, identity.subject, ttl, source="remote")
                return False
            expiration = ttl_expiration if hinted is None else _earliest(hinted, ttl_expiration)
            self._store(self._positive, token, identity.subject, expiration, sliding=self._slides(ttl, hinted))
            self._record_outcome("valid")
            return True

        if hinted is not None:
            self._store(self._positive, token, claimed_owner_id, _earliest(hinted, ttl_expiration))
            self._record_outcome("valid")
            return True

        self.logger.debug("Validation response carried no cacheable fields", token=token_fingerprint(token))
        self._record_outcome("valid_uncached")
        return True

    def _reject_mismatch(
        self,
        token: str,
        claimed_owner_id: str,
        token_owner_id: Optional[str],
        ttl: Optional[float],
        source: str,
    ) -> None:
        self.logger.warning(
            "Token presented by an identity other than its owner",
            event_type="security.identity_mismatch",
            token=token_fingerprint(token),
            claimed_owner_id=claimed_owner_id,
            token_owner_id=token_owner_id,
            source=source,
        )
        self._store(
            self._negative,
            token,
            claimed_owner_id,
            self._ttl_expiration(self._negative, ttl),
            sliding=self._slides(ttl),
        )
        self._record_outcome("identity_mismatch")

    def _ttl_expiration(self, cache: OutcomeCache, ttl: Optional[float]) -> Optional[float]:
        lifetime = cache.ttl_seconds if ttl is None else min(ttl, cache.ttl_seconds)
        if lifetime <= 0:
            return None
        return self._clock() + lifetime

    def _slides(self, ttl: Optional[float], hinted: Optional[float] = None) -> bool:
        # Hints and per-call TTLs are hard deadlines even in access mode
        return self.expiry_mode is ExpiryMode.ACCESS and ttl is None and hinted is None

    def _store(
        self,
        cache: OutcomeCache,
        token: str,
        owner_id: Optional[str],
        expiration: Optional[float],
        sliding: bool = False,
    ) -> None:
        # Records without a future expiration are never cached
        if expiration is None or expiration <= self._clock():
            return
        record = TokenRecord(token=token, expiration=expiration, owner_id=owner_id, sliding=sliding)
        with self._mode_lock:
            if self._degraded:
                return
            cache.put(token, record)

    def _enter_degraded(self, reason: Optional[str]) -> None:
        with self._mode_lock:
            if self._degraded:
                return
            self._degraded = True
            self._positive.clear()
            self._negative.clear()

        self.logger.warning(
            "Validation endpoint returned an unparseable body; parsing and caching disabled",
            event_type="validator.degraded",
            url=self.validation_resource,
            reason=reason,
        )
        if self.metrics is not None:
            self.metrics.set_gauge("validator_degraded", 1)

    def invalidate(self, token: str) -> bool:
        """Forget any cached outcome for ``token``."""
        removed_positive = self._positive.invalidate(token)
        removed_negative = self._negative.invalidate(token)
        return removed_positive or removed_negative

    def stats(self) -> Dict[str, Any]:
        return {
            "validation_resource": self.validation_resource,
            "degraded": self._degraded,
            "identity_binding": self.identity_binding,
            "positive_cache": self._positive.stats(),
            "negative_cache": self._negative.stats(),
        }

    def close(self) -> None:
        """Close the transport if this validator created it."""
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            self.transport.close()

    def _record_lookup(self, cache: str, hit: bool) -> None:
        if self.metrics is not None:
            self.metrics.record_cache_lookup(cache, hit)

    def _record_outcome(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_validation(outcome)


def _earliest(first: float, second: Optional[float]) -> float:
    return first if second is None else min(first, second)


def _is_stale(record: TokenRecord, now: float) -> bool:
    # The cache has already enforced the access TTL of a sliding record
    return not record.sliding and record.is_expired(now)
