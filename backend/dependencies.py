"""FastAPI dependencies handing out the collaborators built in ``create_app``."""
from fastapi import Request

from ai_core.explain_cache import ExplanationCache
from ai_core.llm_client import GeminiClient
from voice.tts_client import SpeechSynthesizer


def get_llm(request: Request) -> GeminiClient:
    return request.app.state.llm


def get_tts(request: Request) -> SpeechSynthesizer:
    return request.app.state.tts


def get_explanation_cache(request: Request) -> ExplanationCache:
    return request.app.state.explanation_cache
