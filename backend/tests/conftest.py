import json
from dataclasses import replace

import httpx
import pytest

from ytquiz.core.config import Settings

VIDEO_ID = "abc123"
WATCH_URL = f"https://www.youtube.com/watch?v={VIDEO_ID}"
DIRECT_URL = f"https://www.youtube.com/api/timedtext?v={VIDEO_ID}&lang=en"
TRACK_URL = f"https://www.youtube.com/api/timedtext?v={VIDEO_ID}&lang=en&fmt=srv1&sig=xyz"

LECTURE_WORDS = (
    "photosynthesis converts light energy into chemical energy stored in glucose molecules "
    "plants absorb carbon dioxide through small pores called stomata on their leaves "
    "chlorophyll inside the chloroplasts captures mostly red and blue wavelengths of light "
    "water is split during the light dependent reactions releasing oxygen as a by product "
    "the calvin cycle then fixes carbon into sugars using the energy carriers atp and nadph "
    "without this process almost every food chain on earth would collapse"
).split()


def make_settings(**overrides) -> Settings:
    base = Settings(
        gemini_api_key="test-key",
        caption_language="en",
        caption_language_name="English",
        transcript_min_words=50,
        sentence_heuristic=True,
        strict_mode=False,
        youtube_timeout_sec=5,
        gemini_timeout_sec=5,
    )
    return replace(base, **overrides)


def caption_xml(words, per_segment=6) -> str:
    """Timed-text document with `words` spread across <text> segments."""
    parts = []
    for i in range(0, len(words), per_segment):
        chunk = " ".join(words[i : i + per_segment])
        parts.append(f'<text start="{i}" dur="2.5">{chunk}</text>')
    return '<?xml version="1.0" encoding="utf-8" ?><transcript>' + "".join(parts) + "</transcript>"


def watch_page(tracks) -> str:
    captions = {"playerCaptionsTracklistRenderer": {"captionTracks": tracks}}
    return (
        "<html><script>var ytInitialPlayerResponse = {\"responseContext\":{},"
        f"\"captions\":{json.dumps(captions)},\"videoDetails\":{{\"videoId\":\"{VIDEO_ID}\"}}}};"
        "</script></html>"
    )


def mock_client(routes) -> httpx.AsyncClient:
    """
    AsyncClient whose responses come from `routes`: url -> body string,
    httpx.Response, or an exception instance to raise. Unknown URLs get 404.
    """
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        seen.append(url)
        answer = routes.get(url)
        if answer is None:
            return httpx.Response(404, text="")
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, text=answer)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client.seen_urls = seen
    return client


def question(
    text="What do plants absorb through the stomata on their leaves?",
    options=("Carbon dioxide", "Nitrogen", "Helium", "Sodium"),
    answer="Carbon dioxide",
    confidence=0.9,
    context=None,
) -> dict:
    item = {
        "question": text,
        "options": list(options),
        "correctAnswer": answer,
        "confidence": confidence,
    }
    if context is not None:
        item["context"] = context
    return item


def numbered_questions(n, confidence=0.9) -> list:
    return [
        question(
            text=f"Which statement about photosynthesis step number {i} is correct?",
            options=(f"Option A{i}", f"Option B{i}", f"Option C{i}", f"Option D{i}"),
            answer=f"Option A{i}",
            confidence=confidence,
        )
        for i in range(n)
    ]


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def lecture_xml():
    return caption_xml(LECTURE_WORDS)
