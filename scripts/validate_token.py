#!/usr/bin/env python3
"""
Validate bearer tokens against a live validation endpoint.

Manual end-to-end harness: builds a validator from flags and the usual
``TOKEN_VALIDATOR_*`` environment, validates each token ``--repeat`` times
and prints a JSON summary including cache statistics, so cache hits show up
as a single remote call per token.

    python scripts/validate_token.py --resource http://localhost:8090/oauth/token_validation \\
        --owner user1 token-user1 token-user2
"""

import argparse
import json
import os
import sys
from typing import List, Optional

# Add repository root to path
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from service_validator.app.validation.token_validator import TokenValidator
from shared.config import BaseConfig
from shared.errors import TransportError
from shared.logging import configure_logging


def run(config: BaseConfig, tokens: List[str], owner: Optional[str], ttl: Optional[float], repeat: int) -> dict:
    """Validate every token and return the summary."""
    validator = TokenValidator.from_config(config)
    results = []
    try:
        for token in tokens:
            outcomes = []
            for _ in range(repeat):
                try:
                    outcomes.append(validator.is_valid(token, owner, ttl))
                except TransportError as exc:
                    outcomes.append(f"error: {exc.message}")
            results.append({"token": token, "results": outcomes})
        return {"results": results, "validator": validator.stats()}
    finally:
        validator.close()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate bearer tokens against a remote endpoint.")
    parser.add_argument("tokens", nargs="+", help="Bearer tokens to validate")
    parser.add_argument("--resource", default=None, help="Validation resource URL (overrides TOKEN_VALIDATOR_VALIDATION_RESOURCE)")
    parser.add_argument("--owner", default=None, help="Claimed owner id for identity binding")
    parser.add_argument("--ttl", type=float, default=None, help="Per-call TTL override in seconds")
    parser.add_argument("--cache-size", type=int, default=None, help="Maximum entries per cache")
    parser.add_argument("--cache-ttl", type=float, default=None, help="Cache TTL in seconds")
    parser.add_argument("--repeat", type=int, default=2, help="Validations per token")
    parser.add_argument("--log-level", default="warning", help="Log level")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    overrides = {
        "validation_resource": args.resource,
        "cache_size": args.cache_size,
        "cache_ttl_seconds": args.cache_ttl,
    }
    config = BaseConfig(**{key: value for key, value in overrides.items() if value is not None})
    configure_logging("harness", args.log_level)

    try:
        summary = run(config, args.tokens, args.owner, args.ttl, max(1, args.repeat))
    except KeyboardInterrupt:
        return 130

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
