"""Error taxonomy shared by the chains, the voice client and the routers."""
from __future__ import annotations

from typing import Optional


class TutorError(Exception):
    """Base class for every failure the backend turns into an HTTP response."""


class InvalidRequest(TutorError):
    """Required input missing or malformed. Always a client-facing 400."""


class UpstreamFormatError(TutorError):
    """The model answered, but not with JSON of the declared shape."""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class GenerationFailed(TutorError):
    """The generative provider call itself failed."""


class SynthesisFailed(TutorError):
    """Both text-to-speech tiers failed."""
