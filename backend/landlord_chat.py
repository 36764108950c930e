"""
Landlord role-play chat: a reluctant landlord persona the renter can practice negotiating with.
Replies stream back one text frame per model delta.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Optional

from config import ModelSettings
from models import ChatMessage
from services.token_stream import ERROR_PART, encode_frame, stream_text_frames

logger = logging.getLogger(__name__)

LANDLORD_SYSTEM_PROMPT = """You are simulating a conversation with a landlord. Adopt the persona of a landlord who is somewhat ambivalent, a bit distant, and generally busy. You don't particularly want to spend a lot of time discussing lease changes or issues, and you might be initially dismissive or provide short, non-committal answers.
However, you are not entirely unreasonable. If the renter (the user) is polite, clear, persistent, makes good arguments, and uses effective communication strategies, you might gradually become more receptive and could eventually agree to reasonable requests or compromises related to their lease.
Your goal is to make the user 'work for it' a bit, providing a realistic practice scenario for negotiating with a reluctant landlord.
Do NOT break character. All your responses should be from the perspective of this landlord.
Do NOT offer general advice as a lease assistant; you ARE the landlord in this simulation.
If the user asks for something outrageous, be firm but still in character (e.g., "I'm afraid that's not something I can consider.").
If the user is rude or overly aggressive, you can become more resistant or end the conversation politely but firmly (e.g., "I don't think we're going to reach an agreement if this is how the conversation continues." or "I have other matters to attend to now.").
Refer to "the lease" or "your agreement" when discussing terms.
IMPORTANT: Do NOT provide legal advice. You are a landlord, not a lawyer."""

CONVERSATION_ROLES = ("user", "assistant")


def build_system_prompt(lease_context: Optional[str] = None, lease_url: Optional[str] = None) -> str:
    prompt = LANDLORD_SYSTEM_PROMPT
    if lease_context and lease_context.strip():
        prompt += (
            "\n\n## Context for the Landlord (You):\n"
            "This tenant has recently had their lease analyzed, and the following points were noted: "
            f"{lease_context.strip()}. You are aware of these points if the tenant brings them up. "
            "You might initially downplay their significance."
        )
    if lease_url and lease_url.strip():
        # The landlord never sees the file itself, only that the tenant has read it.
        prompt += "\nThe tenant has indicated they've reviewed their lease agreement carefully."
    return prompt


def _content_as_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"]
        return "".join(parts)
    return "" if content is None else str(content)


def build_landlord_messages(
    messages: Iterable[ChatMessage],
    lease_context: Optional[str] = None,
    lease_url: Optional[str] = None,
) -> list[dict[str, str]]:
    """System prompt first; client-supplied system turns are dropped."""
    out = [{"role": "system", "content": build_system_prompt(lease_context, lease_url)}]
    for msg in messages:
        if msg.role in CONVERSATION_ROLES:
            out.append({"role": msg.role, "content": _content_as_text(msg.content)})
    return out


def start_landlord_stream(client: Any, messages: list[dict[str, str]], settings: ModelSettings) -> Any:
    """Open the streaming completion. Errors raised here happen before any frame is sent."""
    return client.chat.completions.create(
        model=settings.chat_model,
        messages=messages,
        temperature=settings.chat_temperature,
        stream=True,
    )


def iter_deltas(stream: Any) -> Iterator[Optional[str]]:
    for chunk in stream:
        if not chunk.choices:
            continue
        yield chunk.choices[0].delta.content


def landlord_frames(stream: Any) -> Iterator[bytes]:
    """Text frames for each delta; a failure mid-stream becomes one error frame and ends the body."""
    try:
        yield from stream_text_frames(iter_deltas(stream))
    except Exception as e:
        logger.error("[landlord] stream failed: %s", e)
        yield encode_frame(f"Error processing landlord simulation: {e}", part=ERROR_PART)
    finally:
        close = getattr(stream, "close", None)
        if callable(close):
            close()
