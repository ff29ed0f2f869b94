# models.py

import math
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from ppt_generator.config import DEFAULT_SLIDES, MAX_SLIDES, MIN_SLIDES


def clamp_slide_count(value) -> int:
    """
    Coerces any form value into a slide count within [MIN_SLIDES, MAX_SLIDES].
    Anything that is not a finite number falls back to DEFAULT_SLIDES.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_SLIDES
    if not math.isfinite(number):
        return DEFAULT_SLIDES
    return max(MIN_SLIDES, min(MAX_SLIDES, int(number)))


# --- Request lifecycle ---
class UIState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    DONE = "done"


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "validation_error"
    TIMEOUT_ERROR = "timeout_error"
    SERVER_ERROR = "server_error"
    NETWORK_UNREACHABLE_ERROR = "network_unreachable_error"
    UNKNOWN_ERROR = "unknown_error"


class GenerationRequest(BaseModel):
    topic: str
    slide_count: int = DEFAULT_SLIDES

    @field_validator("topic")
    @classmethod
    def topic_must_not_be_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("topic must not be empty")
        return value

    @field_validator("slide_count", mode="before")
    @classmethod
    def clamp_slides(cls, value) -> int:
        return clamp_slide_count(value)

    def to_params(self) -> dict:
        return {"topic": self.topic, "slides": self.slide_count}


class GenerationSuccess(BaseModel):
    payload: bytes
    filename: str


class GenerationFailure(BaseModel):
    kind: ErrorKind
    message: str


GenerationResult = Union[GenerationSuccess, GenerationFailure]


class Notification(BaseModel):
    level: str  # "success" or "error"
    message: str
    kind: Optional[ErrorKind] = None


# --- Deferred delivery ---
class HandOff(BaseModel):
    """Everything the download page needs to re-offer a generated deck."""
    file_ref: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    slide_count: int = Field(ge=MIN_SLIDES, le=MAX_SLIDES)
