from fastapi import APIRouter, Path

from ..core.errors import ErrorKind, QuizGenerationError
from ..schemas import TranscriptResponse
from ..services import transcript_service
from ..services.youtube_service import extract_video_id

router = APIRouter()


@router.get("/video/{videoId}/transcript", response_model=TranscriptResponse)
async def get_video_transcript(
    videoId: str = Path(..., description="The ID of the YouTube video")
):
    """
    Get the cleaned transcript (captions) for a YouTube video.
    """
    video_id = extract_video_id(videoId)
    if not video_id:
        raise QuizGenerationError(ErrorKind.MISSING_INPUT)

    result = await transcript_service.resolve_transcript(video_id)
    if not result.ok:
        raise QuizGenerationError(result.error or ErrorKind.UNEXPECTED)

    text = result.text or ""
    return {
        "videoId": video_id,
        "transcript": text,
        "wordCount": transcript_service.word_count(text),
    }
