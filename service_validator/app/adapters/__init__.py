"""
Validator adapters.

Outbound HTTP to the remote validation endpoint. The validator only
depends on the ``HttpTransport`` protocol; ``HttpxTransport`` is the
default implementation and callers embedding the validator may supply
their own.
"""

from .http_transport import HttpTransport, HttpxTransport, TransportResponse

__all__ = ["HttpTransport", "HttpxTransport", "TransportResponse"]
