"""Pydantic mirrors of the response schemas handed to the model.

The model is asked to follow the schemas in ``prompts``; these models check that it
actually did before anything is returned to a client or cached.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import UpstreamFormatError


class Visual(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["graph", "diagram", "chart", "svg"]
    data: str
    width: Optional[float] = None
    height: Optional[float] = None


class LessonStep(BaseModel):
    model_config = ConfigDict(extra="allow")

    action: Literal["write", "explain", "draw"]
    content: str = Field(min_length=1)
    audioScript: Optional[str] = None
    position: Optional[Literal["top", "center", "below"]] = None
    visual: Optional[Visual] = None

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be blank")
        return v


class Lesson(BaseModel):
    model_config = ConfigDict(extra="allow")

    lesson: List[LessonStep] = Field(min_length=1)


class Explanation(BaseModel):
    model_config = ConfigDict(extra="allow")

    explanation: str = Field(min_length=1)
    steps: List[str]


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))


def validate_lesson(payload: Any, raw: Optional[str] = None) -> Dict[str, Any]:
    """Return ``payload`` untouched if it is a well-formed lesson, else raise."""
    try:
        Lesson.model_validate(payload)
    except ValidationError as e:
        raise UpstreamFormatError(f"Lesson does not match schema ({_describe(e)})", raw=raw) from e
    return payload


def validate_explanation(payload: Any, raw: Optional[str] = None) -> Dict[str, Any]:
    try:
        Explanation.model_validate(payload)
    except ValidationError as e:
        raise UpstreamFormatError(f"Explanation does not match schema ({_describe(e)})", raw=raw) from e
    return payload
