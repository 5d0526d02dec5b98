"""
HTTP transport used by the validator to reach the validation endpoint.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

import httpx

from shared.errors import TransportError
from shared.logging import get_logger


@dataclass(frozen=True)
class TransportResponse:
    """Status and decoded body of a completed request."""
    status_code: int
    body: str = ""


class HttpTransport(Protocol):
    """Anything that can perform a GET and return status plus body.

    Implementations raise :class:`TransportError` when no response could be
    obtained.
    """

    def get(self, url: str, headers: Mapping[str, str]) -> TransportResponse:
        ...


class HttpxTransport:
    """Transport backed by a synchronous ``httpx.Client``.

    A client passed in by the caller is used as is and left open on
    :meth:`close`; otherwise one is created with ``timeout`` and owned here.
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 10.0):
        self._owns_client = client is None
        self.client = client if client is not None else httpx.Client(timeout=timeout)
        self.logger = get_logger("validator.transport")

    def get(self, url: str, headers: Mapping[str, str]) -> TransportResponse:
        # A token with non-ASCII characters fails header encoding with UnicodeEncodeError
        try:
            response = self.client.get(url, headers=dict(headers))
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            self.logger.error(
                "Validation endpoint request failed",
                url=url,
                error_type=type(exc).__name__,
                error=str(exc)
            )
            raise TransportError(
                f"GET {url} failed: {exc}",
                details={"url": url, "error_type": type(exc).__name__}
            ) from exc

        return TransportResponse(status_code=response.status_code, body=response.text)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
