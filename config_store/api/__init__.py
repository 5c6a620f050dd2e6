"""FastAPI routes and endpoints.

Endpoints:
- GET /health, GET /ready: liveness and readiness
- /v1/profiles, /v1/current-profile, /v1/modes: profile store operations
- /v1/overrides, /v1/globals: override resolver operations

Patterns applied:
- Dependency injection of the store and resolver from app.state
- Store exceptions mapped to HTTP status codes in one place
"""
