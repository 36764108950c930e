"""
Send a lease PDF to the document-analysis model and parse LeaseAnalysis JSON
(overall assessment, red flags, four email drafts).
The PDF goes to the model as-is; nothing is extracted locally.
"""
from __future__ import annotations

import base64
import json
import logging
import re
import time
from typing import Any

from config import ModelSettings
from models import LeaseAnalysis

logger = logging.getLogger(__name__)

EMAIL_TONE_INSTRUCTIONS = """
Based on the identified red flags and overall assessment, generate four distinct email drafts to the landlord. Each email should have a clear subject line, greeting, body, and closing.

1.  **Better Terms Tone ('better-terms')**: Polite but firm. Goal: negotiate better terms or seek clarification. Collaborative, professional, constructive. Suggest reasonable alternatives.
2.  **Get Discount Tone ('discount')**: Assertive yet reasonable. Goal: request a discount or compensation due to unfair terms. Clearly link red flags to financial consideration. Highlight impact on renter.
3.  **Take Charge Tone ('take-charge')**: More aggressive and assertive. Goal: strongly contest terms. Firm, direct, state objections and desired outcomes. Coherent, outline specific actions/changes expected.
4.  **Rampage Tone ('rampage')**: Entertaining, over-the-top, humorous. Purely for entertainment. Absurdly aggressive, comical misinterpretations, ridiculous demands. Hyperbole and wit. Clearly satirical, not genuinely offensive. Make it funny!
"""

SCHEMA_DESC = """
{
  "overallAssessment": "2-4 sentences: general fairness, complexity, renter-friendly vs landlord-friendly",
  "redFlags": [
    {"issue": "short title", "clause": "section number or null", "explanation": "why it matters to the renter", "suggestion": "what to ask the landlord, or null"}
  ],
  "emailDrafts": {
    "better-terms": "full email",
    "discount": "full email",
    "take-charge": "full email",
    "rampage": "full email"
  }
}
"""


def build_analysis_prompt() -> str:
    return f"""Analyze the attached lease agreement PDF for a renter.
First, provide an "overallAssessment".
Second, identify potential "redFlags".
Third, generate "emailDrafts" according to these instructions: {EMAIL_TONE_INSTRUCTIONS}
Output ONLY a single valid JSON object (no markdown, no code block) matching this schema:
{SCHEMA_DESC}
JSON:"""


def build_analysis_messages(pdf_bytes: bytes, filename: str) -> list[dict[str, Any]]:
    encoded = base64.b64encode(pdf_bytes).decode("ascii")
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": build_analysis_prompt()},
                {
                    "type": "file",
                    "file": {
                        "filename": filename or "lease.pdf",
                        "file_data": f"data:application/pdf;base64,{encoded}",
                    },
                },
            ],
        }
    ]


def strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```\w*\n?", "", raw)
        raw = re.sub(r"\n?```\s*$", "", raw)
    return raw.strip()


def parse_analysis(raw: str) -> LeaseAnalysis:
    """Parse the model's reply. Raises json.JSONDecodeError or pydantic.ValidationError on bad output."""
    data = json.loads(strip_code_fence(raw))
    return LeaseAnalysis.model_validate(data)


def analyze_lease(client: Any, pdf_bytes: bytes, filename: str, settings: ModelSettings) -> LeaseAnalysis:
    """One model call with the PDF attached; returns validated LeaseAnalysis."""
    if not pdf_bytes:
        raise ValueError("Empty file")
    t0 = time.perf_counter()
    response = client.chat.completions.create(
        model=settings.analysis_model,
        messages=build_analysis_messages(pdf_bytes, filename),
        temperature=settings.analysis_temperature,
        response_format={"type": "json_object"},
    )
    elapsed = time.perf_counter() - t0
    logger.info("[analyze] LLM call duration=%.2fs model=%s size_bytes=%d", elapsed, settings.analysis_model, len(pdf_bytes))
    raw = response.choices[0].message.content or ""
    return parse_analysis(raw)
