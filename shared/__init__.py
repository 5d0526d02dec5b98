"""
Shared utilities for the bearer token validator.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service skeleton (health, metrics, error handlers)
- test_helpers: Stub transport, fake clock and canned responses for tests

Runtime modules here must not import from service packages; only
test_helpers does, since it builds service-level fixtures.
"""
