"""Core module for configuration, exceptions, logging and tracing.

Patterns applied:
- Pydantic Settings with SettingsConfigDict
- Custom namespaced exceptions (names never shadow builtins)
- One-time structlog / OpenTelemetry configuration
"""
