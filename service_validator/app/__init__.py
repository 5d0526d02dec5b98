"""
Validator service package for bearer token validation.

This package validates bearer tokens against a remote authorization
endpoint and caches the outcome in memory:

- app.caching: Bounded TTL caches for accepted and rejected tokens.
- app.validation: The token validator, its models and response parsing.
- app.adapters: HTTP transport to the remote validation endpoint.
- app.main: FastAPI application exposing validation over HTTP.

Design notes:
- Package import must not perform network calls.
- Each validator owns its caches; run one per validation endpoint.
- Use the shared/ utilities for logging, metrics, config, and errors.
"""
