"""
Shared utilities for rangesync

Provides:
- logging: structured logging setup and formatters
- tracing: OpenTelemetry spans around engine operations
- sql_safety: identifier and integer parameter validation
"""

__all__ = ["logging", "tracing", "sql_safety"]
