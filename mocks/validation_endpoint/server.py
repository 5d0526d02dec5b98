"""
Mock remote validation endpoint for manual and end-to-end checks.

Tokens are looked up in a fixed table; each entry decides what the
endpoint answers so every branch of the validator can be exercised:

- identity tokens return a JSON identity (Google userinfo style)
- expiry tokens return only an ``expires_in`` hint
- the ``plain`` token returns a non-JSON 200 body
- anything else gets a 401
"""

from typing import Any, Dict, Optional
import os
import sys

# Add repository root to path
sys.path.append(os.path.join(os.path.dirname(__file__), "..", ".."))

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from shared.logging import configure_logging, get_logger, token_fingerprint


class MockValidationEndpoint:
    """Mock validation endpoint implementation."""

    def __init__(self, port: int = 8090):
        self.port = port
        self.logger = get_logger("mock.validation_endpoint")
        self.app = FastAPI(title="Mock Validation Endpoint", version="1.0.0")

        self.tokens: Dict[str, Optional[Dict[str, Any]]] = {
            "token-user1": {
                "id": "user1",
                "displayName": "John Doe",
                "url": "https://profiles.example.com/user1",
            },
            "token-user2": {
                "id": "user2",
                "displayName": "Jane Smith",
                "url": "https://profiles.example.com/user2",
                "expires_in": 120,
            },
            "token-expiring": {"token": "token-expiring", "expires_in": 60},
            "token-opaque": {},
            "plain": None,
        }

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock validation routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-validation-endpoint",
                "tokens": sorted(self.tokens),
                "version": "1.0.0"
            }

        @self.app.get("/oauth/token_validation")
        async def validate(authorization: Optional[str] = Header(default=None)) -> Response:
            """Validate the bearer token in the Authorization header."""
            if not authorization or not authorization.startswith("Bearer "):
                return JSONResponse(status_code=401, content={"error": "missing_token"})

            token = authorization[len("Bearer "):]
            if token not in self.tokens:
                self.logger.info("Unknown token", token=token_fingerprint(token))
                return JSONResponse(status_code=401, content={"error": "invalid_token"})

            payload = self.tokens[token]
            if payload is None:
                return PlainTextResponse("Token is valid")
            return JSONResponse(content=payload)

    def run(self):
        """Run the mock endpoint."""
        import uvicorn
        configure_logging("mock", "info")
        uvicorn.run(self.app, host="0.0.0.0", port=self.port)


def create_app():
    """Create FastAPI application."""
    return MockValidationEndpoint().app


if __name__ == "__main__":
    MockValidationEndpoint().run()
