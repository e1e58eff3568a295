import logging
import re
from typing import List, Optional

import httpx

from ..core.config import Settings, settings as default_settings
from ..core.errors import ErrorKind
from ..schemas import TranscriptResult
from . import youtube_service
from .caption_extractors import extract_caption_tracks, select_track

logger = logging.getLogger("ytquiz.services.transcript_service")

_SEGMENT_RE = re.compile(r"<text[^>]*>([\s\S]*?)</text>")
_LEFTOVER_ENTITY_RE = re.compile(r"&[^;]+;")
_SENTENCE_BOUNDARY_RE = re.compile(r"([a-z])\s+([A-Z])")
_WHITESPACE_RE = re.compile(r"\s+")

# Order matters: double-escaped forms first so "&amp;#39;" does not become "&#39;"
_ENTITY_REPLACEMENTS = (
    ("&amp;#39;", "'"),
    ("&amp;quot;", '"'),
    ("&amp;", "&"),
    ("&#39;", "'"),
    ("&quot;", '"'),
    ("&lt;", "<"),
    ("&gt;", ">"),
)


def looks_like_captions(body: str | None) -> bool:
    return bool(body) and "<text" in body


def decode_segment(raw: str) -> str:
    text = raw
    for entity, replacement in _ENTITY_REPLACEMENTS:
        text = text.replace(entity, replacement)
    text = text.replace("\n", " ").strip()
    text = _LEFTOVER_ENTITY_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_segments(caption_xml: str) -> List[str]:
    """Decoded, non-empty caption segments in document order."""
    segments = []
    for match in _SEGMENT_RE.finditer(caption_xml or ""):
        text = decode_segment(match.group(1))
        if text:
            segments.append(text)
    return segments


def add_sentence_breaks(text: str) -> str:
    # Heuristic: lowercase letter, whitespace, capital letter marks a sentence boundary
    return _SENTENCE_BOUNDARY_RE.sub(r"\1. \2", text)


def word_count(text: str) -> int:
    return len(text.split())


def clean_transcript(caption_xml: str, sentence_heuristic: bool = True) -> str:
    transcript = " ".join(extract_segments(caption_xml))
    if sentence_heuristic:
        transcript = add_sentence_breaks(transcript)
    return transcript


async def _fetch_direct_captions(
    client: httpx.AsyncClient, video_id: str, language: str
) -> Optional[str]:
    url = youtube_service.build_timedtext_url(video_id, language)
    try:
        body = await youtube_service.fetch_text(client, url)
    except httpx.HTTPError as e:
        logger.info(f"Direct caption fetch failed for {video_id}, falling back to watch page: {e!r}")
        return None
    if looks_like_captions(body):
        return body
    logger.info(f"Direct caption endpoint returned no caption markup for {video_id}")
    return None


async def _resolve_caption_xml(
    client: httpx.AsyncClient, video_id: str, cfg: Settings
) -> TranscriptResult:
    """Returns the raw caption markup in `text`, or a failure."""
    direct = await _fetch_direct_captions(client, video_id, cfg.caption_language)
    if direct is not None:
        return TranscriptResult.success(direct)

    try:
        html = await youtube_service.fetch_text(
            client, youtube_service.build_watch_url(video_id), browser=True
        )
    except httpx.TimeoutException:
        logger.error(f"Timed out fetching watch page for {video_id}")
        return TranscriptResult.failure(ErrorKind.TIMEOUT)
    except httpx.HTTPError as e:
        logger.error(f"Error fetching watch page for {video_id}: {e!r}")
        return TranscriptResult.failure(ErrorKind.TRANSCRIPT_UNAVAILABLE)

    tracks = extract_caption_tracks(html)
    track = select_track(tracks, cfg.caption_language, cfg.caption_language_name)
    if track is None:
        logger.warning(f"No caption tracks found for {video_id}")
        return TranscriptResult.failure(ErrorKind.NO_CAPTIONS)

    logger.info(f"Using caption track lang='{track.language_code or '?'}' name='{track.name or '?'}' for {video_id}")
    try:
        caption_xml = await youtube_service.fetch_text(client, track.base_url)
    except httpx.TimeoutException:
        logger.error(f"Timed out fetching caption track for {video_id}")
        return TranscriptResult.failure(ErrorKind.TIMEOUT)
    except httpx.HTTPError as e:
        logger.error(f"Error fetching caption track for {video_id}: {e!r}")
        return TranscriptResult.failure(ErrorKind.TRANSCRIPT_UNAVAILABLE)

    return TranscriptResult.success(caption_xml)


async def resolve_transcript(
    video_id: str,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> TranscriptResult:
    """
    Fetch and clean the transcript for a video.

    Never raises for expected failures: the caller must check `result.ok`
    before using `result.text`.
    """
    cfg = settings or default_settings
    if not video_id:
        return TranscriptResult.failure(ErrorKind.MISSING_INPUT)

    logger.info(f"Fetching transcript for video ID: {video_id}")
    if client is None:
        async with youtube_service.create_client(cfg.youtube_timeout_sec) as own_client:
            fetched = await _resolve_caption_xml(own_client, video_id, cfg)
    else:
        fetched = await _resolve_caption_xml(client, video_id, cfg)

    if fetched.error is not None:
        return fetched

    transcript = clean_transcript(fetched.text or "", sentence_heuristic=cfg.sentence_heuristic)
    words = word_count(transcript)
    if words < cfg.transcript_min_words:
        logger.warning(f"Transcript too short for {video_id}: {words} words (< {cfg.transcript_min_words})")
        return TranscriptResult.failure(ErrorKind.INSUFFICIENT_CONTENT)

    logger.info(f"Transcript retrieved for {video_id}: {words} words, starts {transcript[:200]!r}")
    return TranscriptResult.success(transcript)
