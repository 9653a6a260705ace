"""Service settings, read from the environment (and a local .env file if present)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from ai_core.llm_client import GeminiConfig
from voice.tts_client import TTSConfig


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip().lower() in {"", "none"}:
        return None
    return int(value)


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip().lower() in {"", "none"}:
        return None
    return float(value)


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 4000
    log_level: str = "info"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = 10 * 1024 * 1024
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    tts: TTSConfig = field(default_factory=TTSConfig)
    # None keeps every explanation for the lifetime of the process
    cache_max_entries: Optional[int] = None
    cache_ttl_seconds: Optional[float] = None

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            max_body_bytes=int(os.getenv("MAX_BODY_BYTES", cls.max_body_bytes)),
            gemini=GeminiConfig(),
            tts=TTSConfig(),
            cache_max_entries=_optional_int(os.getenv("EXPLANATION_CACHE_MAX_ENTRIES")),
            cache_ttl_seconds=_optional_float(os.getenv("EXPLANATION_CACHE_TTL_SECONDS")),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
