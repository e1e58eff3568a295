import logging
import re
from typing import List

from pydantic import ValidationError

from ..core.config import QualityProfile, Settings, settings as default_settings
from ..core.errors import ErrorKind, QuizGenerationError
from ..schemas import RAW_QUESTION_LIST, FinalQuestion, RawQuestion
from . import llm_client

logger = logging.getLogger("ytquiz.services.quiz_service")

_REPEATED_WORD_RE = re.compile(r"\b(\w+)(?:\s+\1\b){1,2}")
_WHITESPACE_RE = re.compile(r"\s+")

DANGLING_REFERENCE_PATTERNS = [
    re.compile(
        r"\bthe\s+(?:given|above|following|mentioned|previous|stated)\s+"
        r"(?:expression|equation|function|formula|code|statement|example|problem|graph|diagram)s?\b",
        re.IGNORECASE,
    ),
    re.compile(r"\bth(?:is|at)\s+(?:equation|expression|formula)\b", re.IGNORECASE),
    re.compile(r"\bsolve\s+for\b", re.IGNORECASE),
    re.compile(r"\bfind\s+the\s+value\b", re.IGNORECASE),
]

# Operators, superscripts or a number glued to a variable ("2x", "x^2", "a = b")
MATH_NOTATION_RE = re.compile(r"[=+*/^<>√π∑∫≤≥±×÷²³]|\b\d+[a-rt-zA-Z]\b|\b[a-zA-Z]\s*\(\s*[a-zA-Z0-9]")

INCOMPLETE_ENDINGS = frozenset({"in", "of", "for", "with", "by", "the", "a", "to", "as"})

QUIZ_PROMPT = """Generate multiple-choice educational quiz questions based on this YouTube video transcript.

GUIDANCE FOR GENERATING GOOD QUESTIONS:
1. Create questions about key concepts, facts, definitions, or ideas from the transcript.
2. Make questions clear and specific - each must stand on its own without needing additional context.
   Never refer to content the reader cannot see (for example "the given expression" or "the above example").
3. For each question, provide exactly 4 distinct options with only one correct answer.
   The correctAnswer must be copied exactly from one of the options.
4. Focus on the main educational content in the transcript.
5. Give each question a confidence score between 0 and 1 reflecting how directly the transcript
   supports the answer. Use 0.7 or higher only for clearly stated information.
6. If the content is technical or specialized, include the necessary context within the question.
7. Avoid creating questions about ambiguous or unclear parts of the transcript.
8. Generate between {min_items} and {max_items} questions.
{strict_rules}
Transcript: {transcript}

Remember to create educational questions that test understanding of the content."""

STRICT_RULES = """
STRICT REQUIREMENTS:
- Every question MUST include a "context" field quoting the transcript excerpt that supports the answer.
- If a question is about an expression, equation or code, write it out in full inside the question.
- Do NOT use dangling references such as "the given expression", "this equation", "solve for" or
  "find the value" without the full content they refer to.
- Every question must be a complete sentence. Never end a question with a preposition or article
  (in, of, for, with, by, the, a, to, as).
"""


def preclean_transcript(transcript: str) -> str:
    """Collapse stuttered words ("the the the") and repeated whitespace."""
    text = _REPEATED_WORD_RE.sub(r"\1", transcript or "")
    return _WHITESPACE_RE.sub(" ", text).strip()


def build_prompt(transcript: str, profile: QualityProfile, min_items: int, max_items: int) -> str:
    return QUIZ_PROMPT.format(
        min_items=min_items,
        max_items=max_items,
        strict_rules=STRICT_RULES if profile.check_completeness else "",
        transcript=transcript,
    )


def parse_questions(raw_text: str, require_context: bool = False) -> List[RawQuestion]:
    """
    Parse model output. Anything that is not a list of question objects is rejected outright,
    as is any question without a non-empty `context` when the profile requires one.
    """
    try:
        questions = RAW_QUESTION_LIST.validate_json(raw_text)
    except ValidationError as e:
        logger.error(f"AI returned JSON that does not match the quiz schema: {e.error_count()} error(s)")
        raise QuizGenerationError(
            ErrorKind.MODEL_INVALID, "AI returned invalid JSON. Please try another video."
        ) from e

    if require_context:
        missing = sum(1 for q in questions if not (q.context or "").strip())
        if missing:
            logger.error(f"AI omitted the required context on {missing} question(s)")
            raise QuizGenerationError(
                ErrorKind.MODEL_INVALID, "AI returned questions without supporting context."
            )
    return questions


def has_valid_structure(q: RawQuestion, min_question_chars: int) -> bool:
    if len(q.question) < min_question_chars:
        return False
    if len(q.options) != 4 or len(set(q.options)) != 4:
        return False
    return q.correctAnswer in q.options


def has_dangling_reference(question: str) -> bool:
    if not any(p.search(question) for p in DANGLING_REFERENCE_PATTERNS):
        return False
    # The phrase is fine when the expression itself is spelled out
    return not MATH_NOTATION_RE.search(question)


def ends_incomplete(question: str) -> bool:
    words = question.strip().rstrip("?.!:;,").split()
    if not words:
        return True
    return words[-1].lower() in INCOMPLETE_ENDINGS


def is_complete(q: RawQuestion) -> bool:
    return not has_dangling_reference(q.question) and not ends_incomplete(q.question)


def to_final(q: RawQuestion) -> FinalQuestion:
    return FinalQuestion(question=q.question, options=list(q.options), correctAnswer=q.correctAnswer)


def apply_quality_filters(questions: List[RawQuestion], profile: QualityProfile) -> List[FinalQuestion]:
    """Confidence, structure and (strict profile) completeness filters, then projection."""
    confident = [q for q in questions if q.confidence >= profile.min_confidence]
    logger.info(
        f"Confidence filter (>= {profile.min_confidence}): kept {len(confident)} of {len(questions)}"
    )

    valid = [q for q in confident if has_valid_structure(q, profile.min_question_chars)]
    logger.info(f"Structural filter: kept {len(valid)} of {len(confident)}")

    if profile.check_completeness:
        complete = [q for q in valid if is_complete(q)]
        logger.info(f"Completeness filter: kept {len(complete)} of {len(valid)}")
        valid = complete

    return [to_final(q) for q in valid]


async def generate_quiz(transcript: str, settings: Settings | None = None) -> List[FinalQuestion]:
    """
    Generate a validated quiz from a cleaned transcript.
    Raises QuizGenerationError carrying the failure kind.
    """
    cfg = settings or default_settings
    profile = cfg.quality

    cleaned = preclean_transcript(transcript)
    prompt = build_prompt(cleaned, profile, cfg.quiz_min_items, cfg.quiz_max_items)
    schema = llm_client.build_quiz_schema(
        cfg.quiz_min_items, cfg.quiz_max_items, require_context=profile.require_context
    )

    logger.info(f"Generating quiz ({profile.name} profile) from {len(cleaned)} characters of transcript")
    raw_text = await llm_client.generate_json(prompt, schema, settings=cfg)
    questions = parse_questions(raw_text, require_context=profile.require_context)

    final_questions = apply_quality_filters(questions, profile)
    if len(final_questions) < profile.min_questions:
        logger.warning(
            f"Only {len(final_questions)} question(s) survived filtering (need {profile.min_questions})"
        )
        raise QuizGenerationError(ErrorKind.INSUFFICIENT_QUESTIONS)

    logger.info(f"Successfully generated {len(final_questions)} quiz questions")
    return final_questions
