import pytest
from fastapi.testclient import TestClient

from ai_core.explain_cache import ExplanationCache
from ai_core.tests.fakes import EXPLANATION, TWO_STEP_LESSON, FakeLLM
from backend.config import Settings
from backend.main import create_app
from voice.tts_client import SpeechSynthesizer, TTSConfig


async def _neural(text):
    return b"ID3neural"


def _fallback(text):
    return b"ID3fallback"


@pytest.fixture
def settings():
    return Settings(tts=TTSConfig(timeout_seconds=0.2, voice="en-US-AriaNeural", rate="+0%",
                                  fallback_lang="en", max_chars=5000))


@pytest.fixture
def llm():
    return FakeLLM(TWO_STEP_LESSON)


@pytest.fixture
def make_client(settings, llm):
    def _make(llm=llm, synthesizer=None, cache=None, settings=settings):
        app = create_app(
            settings,
            llm=llm,
            synthesizer=synthesizer or SpeechSynthesizer(settings.tts, _neural, _fallback),
            cache=cache or ExplanationCache(),
        )
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def explain_llm():
    return FakeLLM(EXPLANATION)
