from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter

from .core.errors import ErrorKind


# ------------------------------------------------------------
# Transcript resolution
# ------------------------------------------------------------
@dataclass(frozen=True)
class CaptionTrack:
    base_url: str
    language_code: str = ""
    name: Optional[str] = None


@dataclass(frozen=True)
class TranscriptResult:
    text: Optional[str] = None
    error: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)

    @classmethod
    def success(cls, text: str) -> "TranscriptResult":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: ErrorKind) -> "TranscriptResult":
        return cls(error=kind)


# ------------------------------------------------------------
# Question models
# ------------------------------------------------------------
class RawQuestion(BaseModel):
    """A question as returned by the model. Untrusted until filtered."""

    question: str
    options: List[str]
    correctAnswer: str
    confidence: float = Field(ge=0, le=1)
    context: Optional[str] = None


class FinalQuestion(BaseModel):
    question: str
    options: List[str]
    correctAnswer: str


RAW_QUESTION_LIST = TypeAdapter(List[RawQuestion])


# ------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------
class TranscriptRequest(BaseModel):
    videoId: Optional[str] = None


class QuizResponse(BaseModel):
    result: List[FinalQuestion]


class TranscriptResponse(BaseModel):
    videoId: str
    transcript: str
    wordCount: int


class ErrorResponse(BaseModel):
    error: str
