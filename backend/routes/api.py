"""
Renter-facing API: lease analysis, landlord role-play chat, lease-knowledge chat.
Chat endpoints answer in the text-stream framing from services.token_stream;
failures are plain HTTP errors and never enter the stream format.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from config import (
    LangflowSettings,
    ModelSettings,
    StorageSettings,
    get_langflow_settings,
    get_model_settings,
    get_storage_settings,
)
from errors import UpstreamError, UpstreamTimeout, UpstreamUnavailable
from landlord_chat import build_landlord_messages, landlord_frames, start_landlord_stream
from lease_analysis import analyze_lease
from models import AnalysisResponse, LandlordChatRequest, LangflowChatRequest
from openai_client import get_openai_client
from s3_client import PDF_CONTENT_TYPE, upload_lease_pdf
from services.langflow_client import LangflowClient
from services.response_normalizer import extract_answer
from services.token_stream import STREAM_HEADERS, STREAM_MEDIA_TYPE, SingleFrameStream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

CHATBOT_CONFIG_ERROR = "Chatbot configuration error. Please contact support."
UNPARSEABLE_RESPONSE = "Received an unparseable or unexpected response format from the knowledge base."
ANALYSIS_SCHEMA_ERROR = "AI model returned an unexpected data structure for analysis or drafts. Please try again."


def get_langflow_transport() -> Optional[httpx.BaseTransport]:
    """Default network transport; tests override with httpx.MockTransport."""
    return None


def get_s3_client() -> Optional[Any]:
    """None means s3_client builds a boto3 client from StorageSettings."""
    return None


def _text_error(status_code: int, message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


# --- Lease-knowledge assistant (Langflow RAG) ---

def _upstream_error_response(e: UpstreamError) -> PlainTextResponse:
    if isinstance(e, UpstreamTimeout):
        return _text_error(504, f"The knowledge base did not respond in time. {e.detail}".strip())
    if isinstance(e, UpstreamUnavailable):
        return _text_error(500, f"Failed to connect to the knowledge base: {e.detail}")
    # 5xx passes through; anything else from the upstream is our server-side failure
    status = e.status_code if 500 <= e.status_code <= 599 else 502
    return _text_error(status, f"Error communicating with the knowledge base: {e.reason}. Details: {e.detail}")


@router.post("/langflow-chat")
async def langflow_chat(
    request: Request,
    settings: LangflowSettings = Depends(get_langflow_settings),
    transport: Optional[httpx.BaseTransport] = Depends(get_langflow_transport),
):
    """
    Body: {"messages": [{"role", "content"}], "sessionId"?: str}.
    Forwards the last user message to the knowledge-base flow and streams the answer back as one text frame.
    """
    body = await _read_json(request)
    if body is None:
        return _text_error(400, "Request body must be valid JSON.")

    missing = settings.missing()
    if missing:
        logger.error("[langflow-chat] missing configuration: %s", ", ".join(missing))
        return _text_error(500, CHATBOT_CONFIG_ERROR)

    try:
        req = LangflowChatRequest.model_validate(body)
    except ValidationError as e:
        logger.info("[langflow-chat] invalid body: %s", str(e)[:400])
        return _text_error(400, "No user message found or message content is not a string.")

    last_user = req.last_user_message()
    if last_user is None or not isinstance(last_user.content, str):
        return _text_error(400, "No user message found or message content is not a string.")

    try:
        client = LangflowClient(settings, transport=transport)
        data = await run_in_threadpool(client.run, last_user.content, req.session_id)
    except UpstreamError as e:
        return _upstream_error_response(e)

    result = extract_answer(data)
    if not result.found:
        logger.error(
            "[langflow-chat] could not extract chat response text. Full response: %s",
            json.dumps(result.payload, indent=2, default=str),
        )
        return _text_error(500, UNPARSEABLE_RESPONSE)

    logger.info("[langflow-chat] answer extracted probe=%s chars=%d", result.probe, len(result.text))
    return StreamingResponse(SingleFrameStream(result.text), media_type=STREAM_MEDIA_TYPE, headers=STREAM_HEADERS)


# --- Landlord role-play ---

def _landlord_error(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": f"Error processing landlord simulation: {message}"},
    )


@router.post("/chat")
async def landlord_chat(
    request: Request,
    settings: ModelSettings = Depends(get_model_settings),
    client: Any = Depends(get_openai_client),
):
    """Body: {"messages", "leaseContext"?, "leaseUrl"?}. Streams the landlord's reply frame by frame."""
    body = await _read_json(request)
    if body is None:
        return _landlord_error("request body must be valid JSON", status_code=400)
    try:
        req = LandlordChatRequest.model_validate(body)
    except ValidationError as e:
        return _landlord_error(f"invalid request: {str(e)[:400]}", status_code=400)

    if client is None:
        logger.error("[landlord] OPENAI_API_KEY not configured")
        return _landlord_error("OPENAI_API_KEY not configured.")

    messages = build_landlord_messages(req.messages, req.lease_context, req.lease_url)
    try:
        stream = await run_in_threadpool(start_landlord_stream, client, messages, settings)
    except Exception as e:
        logger.error("[landlord] model call failed: %s", e)
        return _landlord_error(str(e))

    return StreamingResponse(landlord_frames(stream), media_type=STREAM_MEDIA_TYPE, headers=STREAM_HEADERS)


# --- Lease analysis ---

def _analysis_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/analyze-lease", response_model=AnalysisResponse)
def analyze_lease_endpoint(
    lease_pdf: Optional[UploadFile] = File(None, alias="leasePdf"),
    model_settings: ModelSettings = Depends(get_model_settings),
    storage_settings: StorageSettings = Depends(get_storage_settings),
    client: Any = Depends(get_openai_client),
    s3: Optional[Any] = Depends(get_s3_client),
):
    """
    Multipart upload (field leasePdf). Stores the PDF, sends it to the analysis model, and returns
    the assessment, red flags, all four email drafts, and the stored file URL.
    """
    if lease_pdf is None:
        return _analysis_error(400, "No file uploaded.")
    content_type = (lease_pdf.content_type or "").split(";")[0].strip().lower()
    if content_type != PDF_CONTENT_TYPE:
        return _analysis_error(400, "Invalid file type. Only PDF is allowed.")
    contents = lease_pdf.file.read()
    filename = lease_pdf.filename or "lease.pdf"
    logger.info("[analyze] filename=%r content_type=%r size_bytes=%d", filename, content_type, len(contents))
    if not contents:
        return _analysis_error(400, "Empty file")
    if client is None:
        return _analysis_error(500, "OPENAI_API_KEY not configured.")

    try:
        file_url = upload_lease_pdf(filename, contents, storage_settings, client=s3)
    except Exception as e:
        logger.error("[analyze] storage failed: %s", e)
        return _analysis_error(500, f"Failed to store the uploaded lease: {e}")

    try:
        analysis = analyze_lease(client, contents, filename, model_settings)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error("[analyze] model output rejected: %s", str(e)[:400])
        return _analysis_error(500, ANALYSIS_SCHEMA_ERROR)
    except Exception as e:
        logger.error("[analyze] model call failed: %s", e)
        return _analysis_error(500, str(e) or "An unexpected error occurred during analysis and draft generation.")

    return AnalysisResponse(
        overall_assessment=analysis.overall_assessment,
        red_flags=analysis.red_flags,
        email_drafts=analysis.email_drafts,
        file_url=file_url,
    )
