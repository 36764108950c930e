"""
HTTP client for the Langflow knowledge-base flow (the lease RAG assistant).

Uses httpx synchronously: the handler makes one blocking call, reads the whole
JSON body, and hands it to the response normalizer. One attempt, no retry.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from config import LangflowSettings
from errors import ConfigurationError, UpstreamError, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

# Error bodies from the upstream are echoed back to the caller; keep them short.
MAX_ERROR_BODY_CHARS = 2000


def build_run_payload(message: str, session_id: str) -> dict[str, str]:
    return {
        "input_value": message,
        "output_type": "chat",
        "input_type": "chat",
        "session_id": session_id,
    }


class LangflowClient:
    """Posts chat turns to a Langflow run endpoint."""

    def __init__(self, settings: LangflowSettings, transport: Optional[httpx.BaseTransport] = None):
        missing = settings.missing()
        if missing:
            raise ConfigurationError(missing)
        self.settings = settings
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {settings.api_key}",
            "Content-Type": "application/json",
        }

    def run(self, message: str, session_id: Optional[str] = None) -> Any:
        """Send one user message; return the parsed JSON body (shape varies by flow)."""
        payload = build_run_payload(message, session_id or self.settings.default_session_id)
        try:
            with httpx.Client(timeout=self.settings.timeout_seconds, transport=self._transport) as client:
                resp = client.post(self.settings.endpoint_url, headers=self._headers, json=payload)
        except httpx.TimeoutException as e:
            logger.error("[langflow] timeout after %.0fs: %s", self.settings.timeout_seconds, e)
            raise UpstreamTimeout(str(e) or "Knowledge base did not respond in time") from e
        except httpx.HTTPError as e:
            logger.error("[langflow] transport error: %s", e)
            raise UpstreamUnavailable(str(e)) from e

        if not resp.is_success:
            body = resp.text[:MAX_ERROR_BODY_CHARS]
            logger.error("[langflow] API error status=%s reason=%s body=%s", resp.status_code, resp.reason_phrase, body)
            raise UpstreamError(resp.status_code, resp.reason_phrase or "Error", body)

        try:
            return resp.json()
        except ValueError as e:
            logger.error("[langflow] non-JSON body status=%s len=%d", resp.status_code, len(resp.content))
            raise UpstreamError(502, "Bad Gateway", "Knowledge base returned a non-JSON body") from e
