"""OpenAI client construction, exposed as a FastAPI dependency so tests can substitute a fake."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends
from openai import OpenAI

from config import ModelSettings, get_model_settings


def build_openai_client(settings: ModelSettings) -> Optional[OpenAI]:
    """None when OPENAI_API_KEY is not set; handlers report that as a configuration error."""
    if not settings.is_configured:
        return None
    return OpenAI(api_key=settings.api_key)


def get_openai_client(settings: ModelSettings = Depends(get_model_settings)) -> Optional[OpenAI]:
    return build_openai_client(settings)
