"""
Validator caching package.

Holds the in-memory outcome cache used twice by each validator: once for
tokens the remote endpoint accepted and once for tokens it rejected. Each
validator owns its caches; nothing here is process-global.
"""

from .outcome_cache import ExpiryMode, OutcomeCache

__all__ = ["ExpiryMode", "OutcomeCache"]
