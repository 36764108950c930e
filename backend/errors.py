"""Failures raised by the upstream connectors and mapped to HTTP responses in routes.api."""
from __future__ import annotations


class ConfigurationError(Exception):
    """A required setting (endpoint URL, API key) is missing. No upstream call was made."""

    def __init__(self, missing: list[str] | None = None):
        self.missing = list(missing or [])
        super().__init__(f"Missing configuration: {', '.join(self.missing) or 'unknown'}")


class UpstreamError(Exception):
    """Upstream service failed: transport error, non-2xx status, or unreadable body."""

    def __init__(self, status_code: int, reason: str, detail: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.detail = detail
        super().__init__(f"{status_code} {reason}: {detail}" if detail else f"{status_code} {reason}")


class UpstreamTimeout(UpstreamError):
    def __init__(self, detail: str = ""):
        super().__init__(504, "Gateway Timeout", detail)


class UpstreamUnavailable(UpstreamError):
    """The connection itself failed (DNS, refused, reset); no HTTP status was received."""

    def __init__(self, detail: str = ""):
        super().__init__(500, "Connection failed", detail)
