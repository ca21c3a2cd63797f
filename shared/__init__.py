"""
Shared utilities for the vishing simulation access layer.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types, responses and error normalization
- retry: Retry helper and decorator with per-attempt timeouts
- base_service: FastAPI service skeleton (middleware, health, error handlers)

Do not import from service_* packages into shared/.
"""
