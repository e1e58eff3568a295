import asyncio
import logging

from google import genai
from google.genai import types

from ..core.config import Settings, settings as default_settings
from ..core.errors import ErrorKind, QuizGenerationError

logger = logging.getLogger("ytquiz.services.llm_client")

_client: genai.Client | None = None


def get_client(api_key: str | None = None) -> genai.Client:
    """Create or reuse the Gemini client."""
    global _client
    if _client is None:
        key = api_key or default_settings.gemini_api_key
        if not key:
            raise RuntimeError("GEMINI_API_KEY is not set in environment")
        _client = genai.Client(api_key=key)
        logger.info(f"Initialized Gemini client with model: {default_settings.gemini_model}")
    return _client


def build_quiz_schema(min_items: int, max_items: int, require_context: bool = False) -> types.Schema:
    """Response schema for a list of four-option multiple-choice questions."""
    required = ["question", "options", "correctAnswer", "confidence"]
    if require_context:
        required.append("context")

    return types.Schema(
        type=types.Type.ARRAY,
        description="A list of multiple-choice questions generated from the given transcript.",
        min_items=min_items,
        max_items=max_items,
        items=types.Schema(
            type=types.Type.OBJECT,
            description="A multiple-choice question with four options and one correct answer.",
            properties={
                "question": types.Schema(
                    type=types.Type.STRING,
                    description="The question text. Clear, self-contained and based on the transcript.",
                ),
                "options": types.Schema(
                    type=types.Type.ARRAY,
                    min_items=4,
                    max_items=4,
                    items=types.Schema(type=types.Type.STRING),
                    description="Four distinct answer choices, including the correct answer.",
                ),
                "correctAnswer": types.Schema(
                    type=types.Type.STRING,
                    description="The correct answer, copied verbatim from the options.",
                ),
                "confidence": types.Schema(
                    type=types.Type.NUMBER,
                    minimum=0,
                    maximum=1,
                    description="How directly the transcript supports the answer (0-1).",
                ),
                "context": types.Schema(
                    type=types.Type.STRING,
                    description="The transcript excerpt that supports the answer.",
                ),
            },
            required=required,
        ),
    )


async def generate_json(prompt: str, schema: types.Schema, settings: Settings | None = None) -> str:
    """
    Ask Gemini for a JSON document constrained by `schema` and return the raw text.

    Raises QuizGenerationError(TIMEOUT) when the call exceeds the configured
    timeout and QuizGenerationError(MODEL_INVALID) for any other failure or
    an empty response.
    """
    cfg = settings or default_settings
    config = types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=schema,
        temperature=cfg.gemini_temperature,
        max_output_tokens=cfg.gemini_max_output_tokens,
    )

    try:
        client = get_client(cfg.gemini_api_key)
        response = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=cfg.gemini_model,
                contents=prompt,
                config=config,
            ),
            timeout=cfg.gemini_timeout_sec,
        )
    except asyncio.TimeoutError:
        logger.error(f"Gemini call timed out after {cfg.gemini_timeout_sec}s")
        raise QuizGenerationError(ErrorKind.TIMEOUT)
    except Exception as e:
        logger.error(f"Error generating content with Gemini: {e}")
        raise QuizGenerationError(ErrorKind.MODEL_INVALID, f"Invalid response from AI model: {e}") from e

    text = getattr(response, "text", None)
    if not text or not text.strip():
        logger.error("Gemini returned an empty response")
        raise QuizGenerationError(ErrorKind.MODEL_INVALID, "Invalid response from AI model.")

    logger.info(f"Raw quiz response: {text[:200]}...")
    return text
