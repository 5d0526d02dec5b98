"""
Validator service for bearer token validation.
"""

from typing import Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.logging import set_owner_context
from .adapters.http_transport import HttpTransport
from .validation.models import InvalidationRequest, ValidationRequest, ValidationResponse
from .validation.token_validator import TokenValidator

SERVICE_NAME = "validator"
SERVICE_PORT = 8020


class ValidatorService(BaseService):
    """Validator service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, transport: Optional[HttpTransport] = None):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config or get_config(SERVICE_NAME, SERVICE_PORT))
        self.token_validator = TokenValidator.from_config(
            self.config,
            transport=transport,
            metrics=self.metrics,
        )
        self._setup_validator_routes()

    def _setup_validator_routes(self):
        """Set up validator-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Bearer Token Validator",
                "version": "1.0.0"
            }

        # Sync handlers run in the threadpool; the validator blocks on I/O
        @self.app.post("/validate", response_model=ValidationResponse)
        def validate(request: ValidationRequest):
            """Validate a bearer token, optionally for a claimed owner."""
            set_owner_context(request.owner_id)
            valid = self.token_validator.is_valid(
                request.token,
                claimed_owner_id=request.owner_id,
                ttl=request.ttl_seconds,
            )
            return ValidationResponse(valid=valid, degraded=self.token_validator.degraded)

        @self.app.post("/invalidate")
        def invalidate(request: InvalidationRequest):
            """Drop cached outcomes for a token."""
            removed = self.token_validator.invalidate(request.token)
            return {"removed": removed}

        @self.app.get("/stats")
        def stats():
            """Cache and mode statistics."""
            return self.token_validator.stats()

    def _check_dependencies(self):
        return {
            "validation_endpoint": "degraded" if self.token_validator.degraded else "ok"
        }

    def _shutdown(self) -> None:
        self.token_validator.close()


def create_app(config: Optional[ServiceConfig] = None, transport: Optional[HttpTransport] = None):
    """Create FastAPI application."""
    service = ValidatorService(config, transport)
    return service.app


if __name__ == "__main__":
    service = ValidatorService()
    service.run()
