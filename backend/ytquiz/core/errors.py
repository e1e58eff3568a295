from enum import Enum
from typing import Dict, Tuple


class ErrorKind(str, Enum):
    MISSING_INPUT = "missing_input"
    TRANSCRIPT_UNAVAILABLE = "transcript_unavailable"
    NO_CAPTIONS = "no_captions"
    INSUFFICIENT_CONTENT = "insufficient_content"
    MODEL_INVALID = "model_invalid"
    INSUFFICIENT_QUESTIONS = "insufficient_questions"
    TIMEOUT = "timeout"
    UNEXPECTED = "unexpected"


# kind -> (HTTP status, client-facing message)
ERROR_RESPONSES: Dict[ErrorKind, Tuple[int, str]] = {
    ErrorKind.MISSING_INPUT: (400, "Video ID is required"),
    ErrorKind.TRANSCRIPT_UNAVAILABLE: (404, "Failed to fetch transcript"),
    ErrorKind.NO_CAPTIONS: (404, "Transcripts not available"),
    ErrorKind.INSUFFICIENT_CONTENT: (400, "Not enough content in transcript"),
    ErrorKind.MODEL_INVALID: (500, "Failed to generate questions. Please try another video."),
    ErrorKind.INSUFFICIENT_QUESTIONS: (
        400,
        "Not enough reliable information in the transcript to generate a quiz",
    ),
    ErrorKind.TIMEOUT: (504, "Upstream request timed out"),
    ErrorKind.UNEXPECTED: (500, "Failed to generate questions. Please try another video."),
}


def status_for(kind: ErrorKind) -> int:
    return ERROR_RESPONSES[kind][0]


def message_for(kind: ErrorKind) -> str:
    return ERROR_RESPONSES[kind][1]


class QuizGenerationError(Exception):
    """
    Raised by the quiz pipeline. Carries the ErrorKind so the HTTP layer
    can pick a status code without inspecting the message.
    """

    def __init__(self, kind: ErrorKind, detail: str | None = None):
        self.kind = kind
        self.detail = detail or message_for(kind)
        super().__init__(self.detail)
