"""Lesson chain: validates the request, calls the model, and checks the lesson it returns."""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Sequence

from .errors import InvalidRequest
from .llm_client import Attachment, GeminiClient, build_parts, parse_json
from .prompts import DEFAULT_LESSON_PROMPT, LESSON_RESPONSE_SCHEMA, TUTOR_SYSTEM_INSTRUCTION
from .schemas import validate_lesson

logger = logging.getLogger("ai_core.lesson_chain")


def decode_attachments(files: Optional[Sequence[Dict[str, Any]]]) -> List[Attachment]:
    """Turn ``[{data: base64, type: mime}]`` into Attachments.

    Accepts data URLs (``data:image/png;base64,...``) as well as bare base64.
    """
    out: List[Attachment] = []
    for i, f in enumerate(files or []):
        data = (f.get("data") or "").strip()
        mime = (f.get("type") or "").strip()
        if not data:
            raise InvalidRequest(f"files[{i}].data is empty")
        if data.startswith("data:") and "," in data:
            header, data = data.split(",", 1)
            if not mime:
                mime = header[5:].split(";", 1)[0]
        if not mime:
            raise InvalidRequest(f"files[{i}].type is required")
        try:
            blob = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidRequest(f"files[{i}].data is not valid base64") from e
        out.append(Attachment(data=blob, mime_type=mime))
    return out


async def generate_lesson(
    client: GeminiClient,
    prompt: Optional[str],
    files: Optional[Sequence[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Generate a whiteboard lesson from a prompt and/or attached files.

    Returns the parsed lesson exactly as the model produced it.
    Raises InvalidRequest, GenerationFailed or UpstreamFormatError.
    """
    text = (prompt or "").strip()
    if not text and not files:
        raise InvalidRequest("Either a prompt or at least one file is required")

    attachments = decode_attachments(files)
    parts = build_parts(text or DEFAULT_LESSON_PROMPT, attachments)
    logger.debug(f"Lesson request: {len(text)} prompt chars, {len(attachments)} attachment(s)")

    raw = await client.generate_json(parts, TUTOR_SYSTEM_INSTRUCTION, LESSON_RESPONSE_SCHEMA)
    payload = parse_json(raw)
    return validate_lesson(payload, raw=raw)
