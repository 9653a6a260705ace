"""FastAPI application for the Easy Prep tutor backend.

``create_app`` builds the Gemini client, the speech synthesizer and the
explanation cache once and hangs them on ``app.state``; routers receive them
through the dependencies in ``backend.dependencies``.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers

from ai_core.explain_cache import ExplanationCache
from ai_core.llm_client import GeminiClient
from backend.config import Settings, configure_logging
from backend.routers import gamification, lesson, tts
from voice.tts_client import SpeechSynthesizer

logger = logging.getLogger("backend.main")

SERVICE_NAME = "easyprep-backend"


class BodySizeLimitMiddleware:
    """Rejects request bodies over ``max_bytes`` with a 413.

    A declared Content-Length is checked up front; chunked bodies are counted
    as they are read and the request fails once the running total passes the limit.
    """

    def __init__(self, app, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > self.max_bytes:
            logger.warning(f"⚠️ Rejecting {scope['path']}: body of {length} bytes exceeds limit")
            response = JSONResponse(status_code=413, content={"detail": "Request body too large"})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning(f"⚠️ Rejecting {scope['path']}: streamed body exceeds {self.max_bytes} bytes")
                    raise HTTPException(status_code=413, detail="Request body too large")
            return message

        await self.app(scope, limited_receive, send)


def create_app(
    settings: Optional[Settings] = None,
    llm: Optional[GeminiClient] = None,
    synthesizer: Optional[SpeechSynthesizer] = None,
    cache: Optional[ExplanationCache] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="Easy Prep Tutor Backend")
    app.state.settings = settings
    app.state.llm = llm or GeminiClient(settings.gemini)
    app.state.tts = synthesizer or SpeechSynthesizer(settings.tts)
    app.state.explanation_cache = cache or ExplanationCache(
        max_entries=settings.cache_max_entries, ttl_seconds=settings.cache_ttl_seconds
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/api/test")
    async def api_test():
        return {"status": "ok", "message": "API is working!"}

    app.include_router(lesson.router, prefix="/api", tags=["lesson"])
    app.include_router(tts.router, prefix="/api", tags=["tts"])
    app.include_router(gamification.router, prefix="/api/gamification", tags=["gamification"])

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info(f"🚀 Server running at http://localhost:{settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
