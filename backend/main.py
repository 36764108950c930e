from __future__ import annotations

import logging
import os
import time
import uuid
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend directory so OPENAI_API_KEY, LANGFLOW_* etc. are available
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from config import LangflowSettings, ModelSettings, StorageSettings, allowed_origins
from routes.api import router as api_router

# Render sets RENDER_GIT_COMMIT
VERSION = (os.environ.get("RENDER_GIT_COMMIT") or "").strip() or "unknown"

_LOG = logging.getLogger("uvicorn.error")

_log_level = (os.environ.get("LOG_LEVEL") or "").strip().upper()
if _log_level:
    logging.getLogger().setLevel(getattr(logging, _log_level, logging.INFO))


app = FastAPI(title="Lease Assistant Backend", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        _LOG.info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


app.add_middleware(RequestLogMiddleware)
app.include_router(api_router)


@app.on_event("startup")
def startup_log() -> None:
    model = ModelSettings.from_env()
    langflow = LangflowSettings.from_env()
    _LOG.info(
        "Backend starting (OPENAI_API_KEY configured: %s, Langflow configured: %s) version=%s",
        model.is_configured, langflow.is_configured, VERSION,
    )
    if not model.is_configured:
        _LOG.warning("OPENAI_API_KEY is not set. Lease analysis and landlord chat will not work.")
    if not langflow.is_configured:
        _LOG.warning("Langflow not configured (missing %s). Lease assistant chat will not work.", ", ".join(langflow.missing()))


@app.get("/health")
def health():
    return {
        "status": "ok",
        "ai_enabled": ModelSettings.from_env().is_configured,
        "langflow_configured": LangflowSettings.from_env().is_configured,
        "storage_configured": StorageSettings.from_env().is_configured,
    }


@app.get("/version")
def version():
    return {"version": VERSION}


def get_app() -> FastAPI:
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.environ.get("HOST", "127.0.0.1"), port=int(os.environ.get("PORT", "8010")))
