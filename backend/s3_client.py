"""
S3 storage for uploaded lease PDFs.
Set S3_BUCKET, AWS_REGION (and AWS credentials); S3_PUBLIC_BASE_URL overrides the bucket URL (e.g. a CDN).
"""
from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Optional
from urllib.parse import quote

import boto3

from config import StorageSettings

logger = logging.getLogger(__name__)

KEY_PREFIX = "leases/"
PDF_CONTENT_TYPE = "application/pdf"


def _client(settings: StorageSettings):
    return boto3.client("s3", region_name=settings.region)


def suffixed_key(filename: str) -> str:
    """leases/<safe-stem>-<random>.pdf so repeat uploads of the same name never collide."""
    name = (filename or "lease.pdf").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    stem = name[:-4] if name.lower().endswith(".pdf") else name
    stem = re.sub(r"[^A-Za-z0-9._-]+", "-", stem).strip("-.") or "lease"
    return f"{KEY_PREFIX}{stem[:80]}-{uuid.uuid4().hex[:12]}.pdf"


def public_url(key: str, settings: StorageSettings) -> str:
    if settings.public_base_url:
        return f"{settings.public_base_url.rstrip('/')}/{quote(key)}"
    return f"https://{settings.bucket}.s3.{settings.region}.amazonaws.com/{quote(key)}"


def upload_lease_pdf(filename: str, body: bytes, settings: StorageSettings, client: Optional[Any] = None) -> str:
    """
    Store the PDF and return its URL. Returns "" when no bucket is configured (local dev).
    Storage errors propagate to the caller.
    """
    if not settings.is_configured:
        logger.warning("[storage] S3_BUCKET not set; lease PDF not stored")
        return ""
    key = suffixed_key(filename)
    s3 = client or _client(settings)
    s3.put_object(Bucket=settings.bucket, Key=key, Body=body, ContentType=PDF_CONTENT_TYPE)
    logger.info("[storage] stored key=%s size_bytes=%d", key, len(body))
    return public_url(key, settings)
