"""Gemini client for schema-constrained, multi-part generation.

Environment (read through ``GeminiConfig``):
- GEMINI_API_KEY (or GOOGLE_API_KEY)
- GEMINI_MODEL   (default: gemini-2.5-flash)
"""
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from .errors import GenerationFailed, UpstreamFormatError

logger = logging.getLogger("ai_core.llm_client")


def _default_api_key() -> str:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""


@dataclass
class GeminiConfig:
    api_key: str = field(default_factory=_default_api_key)
    model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash"))


@dataclass
class Attachment:
    """An inline file sent to the model next to the text prompt."""

    data: bytes
    mime_type: str


def build_parts(text: str, attachments: Optional[List[Attachment]] = None) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = [{"text": text}]
    for att in attachments or []:
        parts.append({"inline_data": {"mime_type": att.mime_type, "data": att.data}})
    return parts


def _strip_code_fence(raw: str) -> str:
    """Drop a ```json ... ``` wrapper if the model added one anyway."""
    s = raw.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[1] if "\n" in s else ""
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    return s.strip()


def parse_json(raw: str) -> Any:
    """Parse model output as JSON, raising UpstreamFormatError with the raw text on failure."""
    if not isinstance(raw, str) or not raw.strip():
        raise UpstreamFormatError("Model returned an empty response", raw=raw if isinstance(raw, str) else None)
    try:
        return json.loads(_strip_code_fence(raw))
    except json.JSONDecodeError as e:
        raise UpstreamFormatError(f"Model returned invalid JSON: {e.msg}", raw=raw) from e


class GeminiClient:
    """Thin async wrapper around ``google.generativeai``.

    One ``GenerativeModel`` is built per system instruction and reused.
    """

    def __init__(self, cfg: Optional[GeminiConfig] = None):
        self.cfg = cfg or GeminiConfig()
        self._models: Dict[str, Any] = {}
        if self.cfg.api_key:
            genai.configure(api_key=self.cfg.api_key)
        else:
            logger.warning("⚠️ GEMINI_API_KEY is not set; generation requests will fail")

    def _model(self, system_instruction: str):
        model = self._models.get(system_instruction)
        if model is None:
            model = genai.GenerativeModel(self.cfg.model, system_instruction=system_instruction)
            self._models[system_instruction] = model
        return model

    async def generate_json(
        self,
        parts: List[Dict[str, Any]],
        system_instruction: str,
        response_schema: Dict[str, Any],
    ) -> str:
        """Send ``parts`` as one user turn and return the raw response text.

        Raises GenerationFailed when the provider call fails or yields no text.
        """
        if not self.cfg.api_key:
            raise GenerationFailed("GEMINI_API_KEY is not configured")

        t0 = time.time()
        try:
            resp = await self._model(system_instruction).generate_content_async(
                [{"role": "user", "parts": parts}],
                generation_config=genai.GenerationConfig(
                    response_mime_type="application/json",
                    response_schema=response_schema,
                ),
            )
            text = resp.text
        except Exception as e:  # noqa: BLE001 - any SDK/transport error is a failed generation
            logger.error(f"❌ Gemini call failed after {time.time() - t0:.2f}s: {e}")
            raise GenerationFailed(str(e)) from e

        logger.debug(f"Gemini responded in {time.time() - t0:.2f}s ({len(text or '')} chars)")
        if not text:
            raise GenerationFailed("Model returned no text")
        return text
