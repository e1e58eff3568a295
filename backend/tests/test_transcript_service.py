import asyncio

import httpx
import pytest

from ytquiz.core.errors import ErrorKind
from ytquiz.services import transcript_service
from ytquiz.services.transcript_service import (
    add_sentence_breaks,
    clean_transcript,
    decode_segment,
    extract_segments,
    resolve_transcript,
    word_count,
)

from conftest import (
    DIRECT_URL,
    LECTURE_WORDS,
    TRACK_URL,
    VIDEO_ID,
    WATCH_URL,
    caption_xml,
    make_settings,
    mock_client,
    watch_page,
)


def resolve(routes, settings):
    async def run():
        async with mock_client(routes) as client:
            return await resolve_transcript(VIDEO_ID, settings=settings, client=client), client.seen_urls

    return asyncio.run(run())


# ------------------------------------------------------------
# Segment decoding
# ------------------------------------------------------------
def test_decode_handles_double_escaped_entities():
    assert decode_segment("it&amp;#39;s &amp;quot;fine&amp;quot;") == 'it\'s "fine"'


def test_decode_handles_plain_entities():
    assert decode_segment("a &lt; b &amp;&amp; c &gt; d, &quot;x&quot; &#39;y&#39;") == "a < b && c > d, \"x\" 'y'"


def test_decode_strips_unknown_entities_and_newlines():
    assert decode_segment("caf&eacute;\nmenu&nbsp;today") == "caf menu today"


@pytest.mark.parametrize(
    "raw",
    [
        "&amp;amp;lt;tag&amp;amp;gt;",
        "&amp;#39;&amp;#39;&#39;",
        "Tom &amp; Jerry &amp;amp; friends",
        "&&x;y;z;",
        "&lt;b&gt;bold&lt;/b&gt; &copy; 2024",
        "  spaced\n\nout  ",
    ],
)
def test_decode_is_idempotent_and_leaves_no_entities(raw):
    once = decode_segment(raw)
    assert decode_segment(once) == once
    assert transcript_service._LEFTOVER_ENTITY_RE.search(once) is None


def test_extract_segments_in_document_order_and_multiline():
    xml = (
        '<transcript><text start="0">first line</text>'
        '<text start="1" dur="2">second\nline</text>'
        '<text start="2"></text>'
        '<text start="3">&nbsp;</text>'
        '<text start="4">third</text></transcript>'
    )
    assert extract_segments(xml) == ["first line", "second line", "third"]


def test_sentence_heuristic_inserts_period_between_case_transition():
    assert add_sentence_breaks("this is done Now we start") == "this is done. Now we start"
    assert add_sentence_breaks("ATP Synthase works") == "ATP Synthase works"


def test_clean_transcript_can_skip_heuristic():
    xml = caption_xml("we begin here Then continue".split())
    assert clean_transcript(xml, sentence_heuristic=False) == "we begin here Then continue"
    assert clean_transcript(xml, sentence_heuristic=True) == "we begin here. Then continue"


def test_word_count_uses_whitespace_tokens():
    assert word_count("one two  three\nfour") == 4
    assert word_count("") == 0


# ------------------------------------------------------------
# resolve_transcript
# ------------------------------------------------------------
def test_direct_caption_endpoint_short_circuits(settings, lecture_xml):
    result, seen = resolve({DIRECT_URL: lecture_xml}, settings)

    assert result.ok
    assert result.text.startswith("photosynthesis converts light energy")
    assert word_count(result.text) == len(LECTURE_WORDS)
    assert seen == [DIRECT_URL]


def test_falls_back_to_watch_page_when_direct_is_empty(settings, lecture_xml):
    routes = {
        DIRECT_URL: "",
        WATCH_URL: watch_page([{"baseUrl": TRACK_URL, "languageCode": "en"}]),
        TRACK_URL: lecture_xml,
    }

    result, seen = resolve(routes, settings)

    assert result.ok
    assert seen == [DIRECT_URL, WATCH_URL, TRACK_URL]


def test_direct_endpoint_failure_is_not_fatal(settings, lecture_xml):
    routes = {
        DIRECT_URL: httpx.ConnectError("boom"),
        WATCH_URL: watch_page([{"baseUrl": TRACK_URL, "languageCode": "en"}]),
        TRACK_URL: lecture_xml,
    }

    result, _ = resolve(routes, settings)

    assert result.ok


def test_prefers_english_track(settings, lecture_xml):
    german_url = "https://www.youtube.com/api/timedtext?v=abc123&lang=de&sig=1"
    routes = {
        WATCH_URL: watch_page([
            {"baseUrl": german_url, "languageCode": "de"},
            {"baseUrl": TRACK_URL, "languageCode": "en"},
        ]),
        TRACK_URL: lecture_xml,
    }

    result, seen = resolve(routes, settings)

    assert result.ok
    assert german_url not in seen


def test_page_without_caption_metadata_is_no_captions(settings):
    routes = {WATCH_URL: "<html><body>no captions here</body></html>"}

    result, _ = resolve(routes, settings)

    assert not result.ok
    assert result.error is ErrorKind.NO_CAPTIONS


def test_wrong_typed_player_metadata_is_no_captions(settings):
    page = '<script>{"captions":{"playerCaptionsTracklistRenderer":"x"},"videoDetails":{}}</script>'
    routes = {WATCH_URL: page}

    result, _ = resolve(routes, settings)

    assert not result.ok
    assert result.error is ErrorKind.NO_CAPTIONS


def test_null_track_name_still_resolves_transcript(settings, lecture_xml):
    tracks = [{"baseUrl": TRACK_URL, "languageCode": "en", "name": {"runs": [{"text": None}]}}]
    routes = {WATCH_URL: watch_page(tracks), TRACK_URL: lecture_xml}

    result, _ = resolve(routes, settings)

    assert result.ok
    assert result.text.split()[:3] == LECTURE_WORDS[:3]


def test_unreachable_watch_page_is_transcript_unavailable(settings):
    routes = {WATCH_URL: httpx.ConnectError("connection refused")}

    result, _ = resolve(routes, settings)

    assert result.error is ErrorKind.TRANSCRIPT_UNAVAILABLE


def test_watch_page_server_error_is_transcript_unavailable(settings):
    routes = {WATCH_URL: httpx.Response(503, text="unavailable")}

    result, _ = resolve(routes, settings)

    assert result.error is ErrorKind.TRANSCRIPT_UNAVAILABLE


def test_caption_track_fetch_failure_is_transcript_unavailable(settings):
    routes = {
        WATCH_URL: watch_page([{"baseUrl": TRACK_URL, "languageCode": "en"}]),
        TRACK_URL: httpx.ReadError("reset"),
    }

    result, _ = resolve(routes, settings)

    assert result.error is ErrorKind.TRANSCRIPT_UNAVAILABLE


def test_watch_page_timeout_is_timeout(settings):
    routes = {WATCH_URL: httpx.ReadTimeout("slow")}

    result, _ = resolve(routes, settings)

    assert result.error is ErrorKind.TIMEOUT


def test_caption_track_timeout_is_timeout(settings):
    routes = {
        WATCH_URL: watch_page([{"baseUrl": TRACK_URL, "languageCode": "en"}]),
        TRACK_URL: httpx.ConnectTimeout("slow"),
    }

    result, _ = resolve(routes, settings)

    assert result.error is ErrorKind.TIMEOUT


def test_forty_word_transcript_is_insufficient_content(settings):
    routes = {DIRECT_URL: caption_xml(LECTURE_WORDS[:40])}

    result, _ = resolve(routes, settings)

    assert result.error is ErrorKind.INSUFFICIENT_CONTENT
    assert result.text is None


def test_minimum_word_count_is_configurable(lecture_xml):
    routes = {DIRECT_URL: lecture_xml}

    result, _ = resolve(routes, make_settings(transcript_min_words=100))

    assert result.error is ErrorKind.INSUFFICIENT_CONTENT


def test_track_with_no_text_segments_is_insufficient_content(settings):
    routes = {
        WATCH_URL: watch_page([{"baseUrl": TRACK_URL, "languageCode": "en"}]),
        TRACK_URL: "<transcript></transcript>",
    }

    result, _ = resolve(routes, settings)

    assert result.error is ErrorKind.INSUFFICIENT_CONTENT


def test_empty_video_id_is_missing_input(settings):
    result = asyncio.run(resolve_transcript("", settings=settings))
    assert result.error is ErrorKind.MISSING_INPUT
