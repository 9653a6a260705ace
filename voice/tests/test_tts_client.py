from __future__ import annotations

import asyncio

import pytest

from ai_core.errors import InvalidRequest, SynthesisFailed
from voice.tts_client import AUDIO_MIME, FALLBACK, PRIMARY, SpeechSynthesizer, TTSConfig

NEURAL_MP3 = b"ID3neural-audio"
FALLBACK_MP3 = b"ID3fallback-audio"


def _cfg(**overrides):
    base = dict(voice="en-US-AriaNeural", rate="+0%", timeout_seconds=0.2, fallback_lang="en", max_chars=5000)
    base.update(overrides)
    return TTSConfig(**base)


def test_default_timeout_is_seven_seconds(monkeypatch):
    monkeypatch.delenv("TTS_TIMEOUT_SECONDS", raising=False)
    assert TTSConfig().timeout_seconds == 7.0


def test_primary_audio_is_used_when_fast():
    fallback_calls = []

    async def primary(text):
        return NEURAL_MP3

    def fallback(text):
        fallback_calls.append(text)
        return FALLBACK_MP3

    result = asyncio.run(SpeechSynthesizer(_cfg(), primary, fallback).synthesize("Hello"))
    assert result.audio == NEURAL_MP3
    assert result.provider == PRIMARY
    assert result.media_type == AUDIO_MIME
    assert fallback_calls == []


def test_slow_primary_is_cancelled_and_fallback_used():
    state = {"cancelled": False}

    async def slow_primary(text):
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            state["cancelled"] = True
            raise
        return NEURAL_MP3

    synth = SpeechSynthesizer(_cfg(timeout_seconds=0.05), slow_primary, lambda text: FALLBACK_MP3)
    result = asyncio.run(synth.synthesize("Hello"))
    assert result.audio == FALLBACK_MP3
    assert result.provider == FALLBACK
    assert state["cancelled"] is True


@pytest.mark.parametrize("outcome", [RuntimeError("503 from edge"), b""])
def test_primary_error_or_empty_audio_falls_back(outcome):
    async def primary(text):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    result = asyncio.run(SpeechSynthesizer(_cfg(), primary, lambda text: FALLBACK_MP3).synthesize("Hello"))
    assert result.provider == FALLBACK
    assert result.audio == FALLBACK_MP3


def test_both_tiers_failing_raises_synthesis_failed():
    async def primary(text):
        raise RuntimeError("edge down")

    def fallback(text):
        raise RuntimeError("gtts down")

    with pytest.raises(SynthesisFailed):
        asyncio.run(SpeechSynthesizer(_cfg(), primary, fallback).synthesize("Hello"))


@pytest.mark.parametrize("text", [None, "", "   "])
def test_empty_text_is_invalid(text):
    async def primary(t):
        raise AssertionError("should not be called")

    with pytest.raises(InvalidRequest):
        asyncio.run(SpeechSynthesizer(_cfg(), primary, lambda t: FALLBACK_MP3).synthesize(text))


def test_long_text_is_trimmed():
    seen = []

    async def primary(text):
        seen.append(text)
        return NEURAL_MP3

    asyncio.run(SpeechSynthesizer(_cfg(max_chars=10), primary, lambda t: b"").synthesize("x" * 50))
    assert seen == ["x" * 10]


def test_edge_engine_collects_audio_chunks(monkeypatch):
    created = {}

    class FakeCommunicate:
        def __init__(self, text, voice, rate):
            created.update(text=text, voice=voice, rate=rate)

        async def stream(self):
            yield {"type": "audio", "data": b"ab"}
            yield {"type": "WordBoundary", "offset": 0}
            yield {"type": "audio", "data": b"cd"}

    monkeypatch.setattr("voice.tts_client.edge_tts.Communicate", FakeCommunicate)
    synth = SpeechSynthesizer(_cfg(voice="en-GB-SoniaNeural"))
    assert asyncio.run(synth._synth_edge("Hello")) == b"abcd"
    assert created == {"text": "Hello", "voice": "en-GB-SoniaNeural", "rate": "+0%"}


def test_gtts_engine_writes_mp3_bytes(monkeypatch):
    class FakeGTTS:
        def __init__(self, text, lang, slow):
            self.text, self.lang = text, lang

        def write_to_fp(self, fp):
            fp.write(f"{self.lang}:{self.text}".encode())

    monkeypatch.setattr("voice.tts_client.gTTS", FakeGTTS)
    synth = SpeechSynthesizer(_cfg(fallback_lang="hi"))
    assert synth._synth_gtts("Namaste") == b"hi:Namaste"
