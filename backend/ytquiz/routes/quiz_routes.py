import logging

from fastapi import APIRouter, Body

from ..core.errors import ErrorKind, QuizGenerationError
from ..schemas import ErrorResponse, QuizResponse, TranscriptRequest
from ..services import quiz_service, transcript_service
from ..services.youtube_service import extract_video_id

logger = logging.getLogger("ytquiz.routes.quiz_routes")

router = APIRouter()


@router.post(
    "/get-transcript",
    response_model=QuizResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_quiz(request: TranscriptRequest = Body(...)):
    """
    Fetch the transcript of a YouTube video and generate a multiple-choice quiz from it.
    Accepts a bare video ID or a YouTube URL.
    """
    video_id = extract_video_id(request.videoId or "")
    if not video_id:
        logger.info("Error: No video ID provided")
        raise QuizGenerationError(ErrorKind.MISSING_INPUT)

    logger.info(f"Processing request for video ID: {video_id}")
    transcript = await transcript_service.resolve_transcript(video_id)
    if not transcript.ok:
        raise QuizGenerationError(transcript.error or ErrorKind.UNEXPECTED)

    result = await quiz_service.generate_quiz(transcript.text or "")
    logger.info(f"Generated {len(result)} questions for {video_id}")
    return {"result": result}
