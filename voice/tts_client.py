"""Two-tier text-to-speech: edge-tts (neural) first, gTTS as the last resort.

The neural call races a timeout; on timeout it is cancelled, not abandoned.
Both tiers return MP3 bytes.

Env Vars (optional)
- TTS_VOICE=edge-tts voice name            (default: en-US-AriaNeural)
- TTS_RATE=edge-tts rate string            (default: +0%)
- TTS_TIMEOUT_SECONDS=neural tier timeout  (default: 7)
- TTS_FALLBACK_LANG=gTTS language code     (default: en)
- TTS_MAX_CHARS=trim limit for input text  (default: 5000)
"""
from __future__ import annotations

import asyncio
import io
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import edge_tts
from gtts import gTTS

from ai_core.errors import InvalidRequest, SynthesisFailed

logger = logging.getLogger("voice.tts_client")

AUDIO_MIME = "audio/mpeg"
PRIMARY = "edge-tts"
FALLBACK = "gtts"

PrimaryFn = Callable[[str], Awaitable[bytes]]
FallbackFn = Callable[[str], bytes]


@dataclass
class TTSConfig:
    voice: str = field(default_factory=lambda: os.getenv("TTS_VOICE", "en-US-AriaNeural"))
    rate: str = field(default_factory=lambda: os.getenv("TTS_RATE", "+0%"))
    timeout_seconds: float = field(default_factory=lambda: float(os.getenv("TTS_TIMEOUT_SECONDS", "7")))
    fallback_lang: str = field(default_factory=lambda: os.getenv("TTS_FALLBACK_LANG", "en"))
    max_chars: int = field(default_factory=lambda: int(os.getenv("TTS_MAX_CHARS", "5000")))


@dataclass
class SynthesisResult:
    audio: bytes
    provider: str
    elapsed: float
    media_type: str = AUDIO_MIME


class SpeechSynthesizer:
    """
    Engines:
      - primary : edge-tts neural voice (network, can be slow or flaky).
      - fallback: gTTS (Google Translate TTS), blocking, run in a worker thread.
    Either can be replaced (tests pass fakes in).
    """

    def __init__(
        self,
        cfg: Optional[TTSConfig] = None,
        primary: Optional[PrimaryFn] = None,
        fallback: Optional[FallbackFn] = None,
    ):
        self.cfg = cfg or TTSConfig()
        self._primary = primary or self._synth_edge
        self._fallback = fallback or self._synth_gtts

    # ------------------- Engine implementations -------------------

    async def _synth_edge(self, text: str) -> bytes:
        communicate = edge_tts.Communicate(text, voice=self.cfg.voice, rate=self.cfg.rate)
        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
        return bytes(audio)

    def _synth_gtts(self, text: str) -> bytes:
        buf = io.BytesIO()
        gTTS(text=text, lang=self.cfg.fallback_lang, slow=False).write_to_fp(buf)
        return buf.getvalue()

    # ------------------- TTS core -------------------

    async def _try_primary(self, text: str) -> Optional[bytes]:
        try:
            audio = await asyncio.wait_for(self._primary(text), timeout=self.cfg.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ {PRIMARY} timed out after {self.cfg.timeout_seconds}s; falling back to {FALLBACK}")
            return None
        except Exception as e:  # noqa: BLE001 - any primary failure goes to the fallback tier
            logger.warning(f"⚠️ {PRIMARY} failed ({e}); falling back to {FALLBACK}")
            return None
        if not audio:
            logger.warning(f"⚠️ {PRIMARY} returned no audio; falling back to {FALLBACK}")
            return None
        return audio

    async def synthesize(self, text: Optional[str]) -> SynthesisResult:
        """Synthesize ``text`` to MP3.

        Raises InvalidRequest on empty text and SynthesisFailed when both tiers fail.
        """
        safe_text = (text or "").strip()
        if not safe_text:
            raise InvalidRequest("text is required")
        if len(safe_text) > self.cfg.max_chars:
            safe_text = safe_text[: self.cfg.max_chars]

        t0 = time.perf_counter()
        audio = await self._try_primary(safe_text)
        if audio is not None:
            return SynthesisResult(audio=audio, provider=PRIMARY, elapsed=time.perf_counter() - t0)

        try:
            audio = await asyncio.to_thread(self._fallback, safe_text)
        except Exception as e:  # noqa: BLE001
            logger.error(f"❌ {FALLBACK} failed too: {e}")
            raise SynthesisFailed(f"Both TTS providers failed: {e}") from e
        if not audio:
            raise SynthesisFailed(f"{FALLBACK} returned no audio")
        return SynthesisResult(audio=audio, provider=FALLBACK, elapsed=time.perf_counter() - t0)
