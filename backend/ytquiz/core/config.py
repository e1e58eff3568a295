import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load environment variables before any setting is read
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class QualityProfile:
    """Thresholds applied to model output before it reaches a quiz."""

    name: str
    min_confidence: float
    min_question_chars: int
    min_questions: int
    check_completeness: bool
    require_context: bool


LENIENT_PROFILE = QualityProfile(
    name="lenient",
    min_confidence=0.6,
    min_question_chars=20,
    min_questions=3,
    check_completeness=False,
    require_context=False,
)

STRICT_PROFILE = QualityProfile(
    name="strict",
    min_confidence=0.8,
    min_question_chars=30,
    min_questions=5,
    check_completeness=True,
    require_context=True,
)


@dataclass(frozen=True)
class Settings:
    # Gemini
    gemini_api_key: str | None = field(default_factory=lambda: os.getenv("GEMINI_API_KEY"))
    gemini_model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-1.5-pro"))
    gemini_temperature: float = field(default_factory=lambda: float(os.getenv("GEMINI_TEMPERATURE", "0.2")))
    gemini_max_output_tokens: int = field(
        default_factory=lambda: int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "8000"))
    )
    gemini_timeout_sec: float = field(default_factory=lambda: float(os.getenv("GEMINI_TIMEOUT_SEC", "60")))

    # YouTube
    youtube_timeout_sec: float = field(default_factory=lambda: float(os.getenv("YOUTUBE_TIMEOUT_SEC", "15")))
    caption_language: str = field(default_factory=lambda: os.getenv("CAPTION_LANGUAGE", "en"))
    caption_language_name: str = field(default_factory=lambda: os.getenv("CAPTION_LANGUAGE_NAME", "English"))

    # Transcript cleaning
    transcript_min_words: int = field(default_factory=lambda: int(os.getenv("TRANSCRIPT_MIN_WORDS", "50")))
    sentence_heuristic: bool = field(default_factory=lambda: _env_flag("TRANSCRIPT_SENTENCE_HEURISTIC", "1"))

    # Quiz generation
    strict_mode: bool = field(default_factory=lambda: _env_flag("QUIZ_STRICT_MODE", "0"))
    quiz_min_items: int = field(default_factory=lambda: int(os.getenv("QUIZ_MIN_ITEMS", "5")))
    quiz_max_items: int = field(default_factory=lambda: int(os.getenv("QUIZ_MAX_ITEMS", "10")))

    # Service
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    cors_origins: str = field(default_factory=lambda: os.getenv("CORS_ORIGINS", "*"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))

    @property
    def quality(self) -> QualityProfile:
        return STRICT_PROFILE if self.strict_mode else LENIENT_PROFILE

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
