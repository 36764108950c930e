"""
Settings read from the environment. Handlers receive these through FastAPI
dependencies so the response normalizer and stream adapter stay pure.

LANGFLOW_ENDPOINT_URL, LANGFLOW_API_KEY  -> knowledge-base (RAG) upstream
OPENAI_API_KEY, OPENAI_LEASE_MODEL, OPENAI_CHAT_MODEL -> analysis + landlord chat
S3_BUCKET, AWS_REGION, S3_PUBLIC_BASE_URL -> uploaded lease storage
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_SESSION_ID = "lease_assistant_session"
DEFAULT_LANGFLOW_TIMEOUT_SECONDS = 60.0
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


def _env_str(name: str, default: str = "") -> str:
    return (os.environ.get(name) or "").strip() or default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class LangflowSettings:
    endpoint_url: str = ""
    api_key: str = ""
    default_session_id: str = DEFAULT_SESSION_ID
    timeout_seconds: float = DEFAULT_LANGFLOW_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "LangflowSettings":
        return cls(
            endpoint_url=_env_str("LANGFLOW_ENDPOINT_URL"),
            api_key=_env_str("LANGFLOW_API_KEY"),
            default_session_id=_env_str("LANGFLOW_SESSION_ID", DEFAULT_SESSION_ID),
            timeout_seconds=_env_float("LANGFLOW_TIMEOUT_SECONDS", DEFAULT_LANGFLOW_TIMEOUT_SECONDS),
        )

    def missing(self) -> list[str]:
        """Names of required env vars that are not set."""
        out = []
        if not self.endpoint_url.strip():
            out.append("LANGFLOW_ENDPOINT_URL")
        if not self.api_key.strip():
            out.append("LANGFLOW_API_KEY")
        return out

    @property
    def is_configured(self) -> bool:
        return not self.missing()


@dataclass(frozen=True)
class ModelSettings:
    api_key: str = ""
    analysis_model: str = DEFAULT_OPENAI_MODEL
    chat_model: str = DEFAULT_OPENAI_MODEL
    analysis_temperature: float = 0.5
    # Slightly higher so the landlord persona reads less robotic
    chat_temperature: float = 0.65

    @classmethod
    def from_env(cls) -> "ModelSettings":
        return cls(
            api_key=_env_str("OPENAI_API_KEY"),
            analysis_model=_env_str("OPENAI_LEASE_MODEL", DEFAULT_OPENAI_MODEL),
            chat_model=_env_str("OPENAI_CHAT_MODEL", DEFAULT_OPENAI_MODEL),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())


@dataclass(frozen=True)
class StorageSettings:
    bucket: str = ""
    region: str = "us-east-1"
    public_base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "StorageSettings":
        return cls(
            bucket=_env_str("S3_BUCKET"),
            region=_env_str("AWS_REGION", "us-east-1"),
            public_base_url=_env_str("S3_PUBLIC_BASE_URL") or None,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.bucket)


def allowed_origins() -> list[str]:
    raw = _env_str("ALLOWED_ORIGINS")
    if raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    return ["http://localhost:3000", "http://127.0.0.1:3000"]


# FastAPI dependencies; tests swap these via app.dependency_overrides.

def get_langflow_settings() -> LangflowSettings:
    return LangflowSettings.from_env()


def get_model_settings() -> ModelSettings:
    return ModelSettings.from_env()


def get_storage_settings() -> StorageSettings:
    return StorageSettings.from_env()
