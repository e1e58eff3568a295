import logging
import re
from typing import Dict
from urllib.parse import parse_qs, quote, urlparse

import httpx

logger = logging.getLogger("ytquiz.services.youtube_service")

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch"
YOUTUBE_TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"

# Some YouTube edges serve a consent page or a stripped document to non-browser clients
BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

_YT_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{11}$")
_PATH_PREFIXES = ("embed/", "shorts/", "v/", "live/")


def extract_video_id(value: str) -> str | None:
    """
    Normalize user input to a video id.

    Supports:
    - VIDEOID (bare id)
    - https://www.youtube.com/watch?v=VIDEOID
    - https://youtu.be/VIDEOID
    - https://www.youtube.com/embed/VIDEOID, /shorts/VIDEOID, /v/VIDEOID, /live/VIDEOID

    Returns the stripped input unchanged when it is not a recognizable URL,
    and None when the input is empty.
    """
    raw = (value or "").strip()
    if not raw:
        return None
    if _YT_ID_RE.match(raw):
        return raw

    candidate = raw if "://" in raw else f"https://{raw}"
    try:
        u = urlparse(candidate)
    except ValueError:
        return raw

    host = (u.netloc or "").lower()
    path = (u.path or "").strip("/")

    if host.endswith("youtu.be"):
        vid = path.split("/")[0] if path else ""
        return vid if _YT_ID_RE.match(vid) else raw

    if "youtube.com" in host:
        q = parse_qs(u.query or "")
        vid = (q.get("v", [""])[0]).strip()
        if vid and _YT_ID_RE.match(vid):
            return vid

        for prefix in _PATH_PREFIXES:
            if path.startswith(prefix):
                parts = path.split("/")
                vid = parts[1] if len(parts) > 1 else ""
                if _YT_ID_RE.match(vid):
                    return vid

    return raw


def build_watch_url(video_id: str) -> str:
    return f"{YOUTUBE_WATCH_URL}?v={quote(video_id, safe='')}"


def build_timedtext_url(video_id: str, language: str) -> str:
    return f"{YOUTUBE_TIMEDTEXT_URL}?v={quote(video_id, safe='')}&lang={quote(language, safe='')}"


def create_client(timeout_sec: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout_sec, follow_redirects=True)


async def fetch_text(client: httpx.AsyncClient, url: str, browser: bool = False) -> str:
    """
    GET a YouTube resource and return its body.

    Raises httpx.TimeoutException on timeouts and httpx.HTTPError for
    transport failures and non-2xx responses; callers decide how each maps
    to an error kind.
    """
    headers = BROWSER_HEADERS if browser else None
    response = await client.get(url, headers=headers)
    response.raise_for_status()
    logger.debug(f"GET {url} -> {response.status_code} ({len(response.text)} chars)")
    return response.text
