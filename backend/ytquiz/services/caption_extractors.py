"""
Caption-track discovery for YouTube watch pages.

The player configuration embedded in the watch page is undocumented and
changes shape from time to time, so track metadata is located with an
ordered chain of independent strategies. Each strategy is a pure function
``html -> list[CaptionTrack] | None``; the first one that yields at least
one track wins.
"""
import json
import logging
import re
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..schemas import CaptionTrack

logger = logging.getLogger("ytquiz.services.caption_extractors")

CAPTIONS_MARKER = '"captions":'
CAPTIONS_END_MARKER = ',"videoDetails'
TRACKS_MARKER = '"captionTracks":'
TRACKS_END_MARKER = ',"audioTracks'

_BASE_URL_RE = re.compile(r'"baseUrl":"(https://www\.youtube\.com/api/timedtext[^"]+)"')

Strategy = Callable[[str], Optional[List[CaptionTrack]]]


def _between(html: str, start: str, end: str) -> str | None:
    if start not in html:
        return None
    tail = html.split(start, 1)[1]
    return tail.split(end, 1)[0]


def _track_name(name: Any) -> str | None:
    if isinstance(name, str):
        return name
    if isinstance(name, dict):
        if isinstance(name.get("simpleText"), str):
            return name["simpleText"]
        runs = name.get("runs")
        if isinstance(runs, list):
            text = "".join(
                r["text"] for r in runs if isinstance(r, dict) and isinstance(r.get("text"), str)
            )
            return text or None
    return None


def tracks_from_json(raw_tracks: Any) -> List[CaptionTrack]:
    """Convert player-config track dicts into CaptionTracks, dropping entries without a URL."""
    if isinstance(raw_tracks, dict):
        raw_tracks = [raw_tracks]
    if not isinstance(raw_tracks, list):
        return []

    tracks: List[CaptionTrack] = []
    for item in raw_tracks:
        if not isinstance(item, dict):
            continue
        base_url = item.get("baseUrl")
        if not isinstance(base_url, str) or not base_url:
            continue
        tracks.append(
            CaptionTrack(
                base_url=base_url,
                language_code=item["languageCode"] if isinstance(item.get("languageCode"), str) else "",
                name=_track_name(item.get("name")),
            )
        )
    return tracks


def from_captions_object(html: str) -> Optional[List[CaptionTrack]]:
    """`"captions":{...}` up to `,"videoDetails`, parsed as a JSON object."""
    segment = _between(html, CAPTIONS_MARKER, CAPTIONS_END_MARKER)
    if not segment:
        return None
    try:
        data = json.loads(segment)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    renderer = data.get("playerCaptionsTracklistRenderer")
    if not isinstance(renderer, dict):
        return None
    tracks = tracks_from_json(renderer.get("captionTracks"))
    return tracks or None


def from_caption_tracks_array(html: str) -> Optional[List[CaptionTrack]]:
    """`"captionTracks":[...]` up to `,"audioTracks`, wrapped in brackets when bare."""
    segment = _between(html, TRACKS_MARKER, TRACKS_END_MARKER)
    if not segment:
        return None

    data: Any = None
    for candidate in (segment, f"[{segment}]"):
        try:
            data = json.loads(candidate)
            break
        except json.JSONDecodeError:
            continue
    if data is None:
        return None

    tracks = tracks_from_json(data)
    return tracks or None


def from_base_url_scan(html: str) -> Optional[List[CaptionTrack]]:
    """Last resort: scrape timedtext URLs straight out of the page."""
    urls = [m.group(1).replace("\\u0026", "&") for m in _BASE_URL_RE.finditer(html)]
    if not urls:
        return None
    return [CaptionTrack(base_url=url) for url in urls]


EXTRACTION_STRATEGIES: Sequence[Tuple[str, Strategy]] = (
    ("captions_object", from_captions_object),
    ("caption_tracks_array", from_caption_tracks_array),
    ("base_url_scan", from_base_url_scan),
)


def extract_caption_tracks(
    html: str,
    strategies: Sequence[Tuple[str, Strategy]] = EXTRACTION_STRATEGIES,
) -> List[CaptionTrack]:
    for name, strategy in strategies:
        tracks = strategy(html)
        if tracks:
            logger.info(f"Caption strategy '{name}' found {len(tracks)} track(s)")
            return tracks
        logger.debug(f"Caption strategy '{name}' found nothing")
    return []


def select_track(
    tracks: Sequence[CaptionTrack],
    language_code: str,
    language_name: str,
) -> CaptionTrack | None:
    """
    Pick a caption track by priority:
    exact language code > display name contains language name >
    URL carries lang=<code> > first track.
    """
    if not tracks:
        return None

    for track in tracks:
        if track.language_code == language_code:
            return track

    wanted_name = language_name.lower()
    if wanted_name:
        for track in tracks:
            if track.name and wanted_name in track.name.lower():
                return track

    url_marker = f"lang={language_code}"
    for track in tracks:
        if url_marker in track.base_url:
            return track

    return tracks[0]
