"""Concept explanation chain, served through the explanation cache."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidRequest
from .explain_cache import DEFAULT_CONTEXT, ExplanationCache, make_cache_key
from .llm_client import GeminiClient, build_parts, parse_json
from .prompts import (
    EXPLAIN_CONCEPT_SYSTEM_INSTRUCTION,
    EXPLANATION_RESPONSE_SCHEMA,
    render_explain_prompt,
)
from .schemas import validate_explanation

logger = logging.getLogger("ai_core.explain_chain")


async def generate_explanation(
    client: GeminiClient, subject: str, topic: str, subtopic: str, context: str
) -> Dict[str, Any]:
    prompt = render_explain_prompt(subject, topic, subtopic, context)
    raw = await client.generate_json(
        build_parts(prompt), EXPLAIN_CONCEPT_SYSTEM_INSTRUCTION, EXPLANATION_RESPONSE_SCHEMA
    )
    return validate_explanation(parse_json(raw), raw=raw)


async def explain_concept(
    client: GeminiClient,
    cache: ExplanationCache,
    subject: Optional[str],
    topic: Optional[str],
    subtopic: Optional[str],
    context: Optional[str] = None,
) -> Tuple[Dict[str, Any], bool]:
    """Return ``(explanation, cached)`` for a concept.

    Raises InvalidRequest when subject, topic or subtopic is missing; provider
    failures propagate as GenerationFailed / UpstreamFormatError and are not cached.
    """
    missing = [name for name, v in (("subject", subject), ("topic", topic), ("subtopic", subtopic))
               if not (v or "").strip()]
    if missing:
        raise InvalidRequest(f"Missing required field(s): {', '.join(missing)}")

    ctx = (context or "").strip() or DEFAULT_CONTEXT
    key = make_cache_key(subject, topic, subtopic, ctx)

    async def _factory() -> Dict[str, Any]:
        logger.info(f"🧠 Cache miss, generating explanation: {key}")
        return await generate_explanation(client, subject, topic, subtopic, ctx)

    value, hit = await cache.get_or_create(key, _factory)
    if hit:
        logger.info(f"⚡ Serving cached explanation: {key}")
    return value, hit
