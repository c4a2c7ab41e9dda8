"""quizforge/services/captions.py

YouTube transcript resolution, tried strictly in order:

1. timedtext list API  -> best language track -> caption XML
2. watch page scrape   -> ytInitialPlayerResponse caption tracks -> caption XML
3. title + description from the watch page (flagged with a shallow-content notice)

Every network failure inside a tier turns into a `Failure` for that tier; only
running out of tiers raises `NoCaptions`.
"""

from __future__ import annotations

import html as html_lib
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests
from bs4 import BeautifulSoup
from loguru import logger

from ..errors import NoCaptions
from ..settings import settings
from .fallback import Failure, Ok, first_success
from .text import ExtractedText

TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"
WATCH_URL = "https://www.youtube.com/watch"
OEMBED_URL = "https://www.youtube.com/oembed"

API_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible)"}
WATCH_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "fr-FR,fr;q=0.9,en;q=0.8",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

NO_CAPTIONS_MESSAGE = (
    "Could not extract content from this YouTube video: no captions/subtitles were found. "
    "Make sure the video is public and has captions enabled (check if the CC button appears on YouTube)."
)
SHALLOW_NOTICE = (
    "No transcript found: only the video title & description were extracted. "
    "Questions may be generic. Use a video with CC/subtitles for better results."
)

_PLAYER_RESPONSE_RE = re.compile(r"ytInitialPlayerResponse\s*=\s*\{")


@dataclass(frozen=True)
class CaptionTrack:
    language_code: str
    display_name: str = ""
    base_url: Optional[str] = None


def resolve(video_id: str) -> ExtractedText:
    logger.info(f"[captions] resolving video {video_id}")
    outcome = first_success(
        video_id,
        [
            ("tier-1 timedtext", timedtext_tier),
            ("tier-2 watch-page", watch_page_tier),
            ("tier-3 metadata", metadata_tier),
        ],
        label="captions",
    )
    if isinstance(outcome, Ok):
        return outcome.value
    logger.warning(f"[captions] all tiers exhausted for {video_id}")
    raise NoCaptions(NO_CAPTIONS_MESSAGE)


# ---------- tiers ----------

def timedtext_tier(video_id: str, _previous: Optional[Failure]):
    listing = _get(TIMEDTEXT_URL, params={"type": "list", "v": video_id},
                   headers=API_HEADERS, timeout=settings.TIMEDTEXT_TIMEOUT_SECONDS)
    if isinstance(listing, Failure):
        return listing
    tracks = parse_track_list(listing.text)
    if not tracks:
        return Failure("no caption tracks listed")

    track = pick_track(tracks, settings.CAPTION_LANGUAGES)
    logger.info(f"[captions] tier-1 tracks={[t.language_code for t in tracks]} chosen={track.language_code}")

    params = {"v": video_id, "lang": track.language_code}
    if track.display_name:
        params["name"] = track.display_name
    caption = _get(TIMEDTEXT_URL, params=params, headers=API_HEADERS, timeout=settings.CAPTION_TIMEOUT_SECONDS)
    if isinstance(caption, Failure):
        return caption

    transcript = parse_caption_xml(caption.text)
    if not transcript:
        return Failure("caption track was empty")

    return Ok(_transcript_text(fetch_oembed_title(video_id), transcript))


def watch_page_tier(video_id: str, _previous: Optional[Failure]):
    page = _get(WATCH_URL, params={"v": video_id}, headers=WATCH_HEADERS,
                timeout=settings.WATCH_PAGE_TIMEOUT_SECONDS)
    if isinstance(page, Failure):
        return page

    page_html = page.text
    meta = {"title": page_title(page_html), "description": page_description(page_html)}

    tracks = player_caption_tracks(page_html)
    track = pick_track(tracks, settings.CAPTION_LANGUAGES) if tracks else None
    if track is None or not track.base_url:
        return Failure("no caption tracks in player response", meta)

    caption = _get(track.base_url, timeout=settings.CAPTION_TIMEOUT_SECONDS)
    if isinstance(caption, Failure):
        return Failure(caption.reason, meta)

    transcript = parse_caption_xml(caption.text)
    if not transcript:
        return Failure("caption track was empty", meta)

    return Ok(_transcript_text(meta["title"], transcript))


def metadata_tier(_video_id: str, previous: Optional[Failure]):
    meta = previous.context if previous else {}
    title = meta.get("title")
    description = meta.get("description")
    if not title and not description:
        return Failure("no title or description available")

    text = ""
    if title:
        text += f"Video Title: {title}\n\n"
    if description:
        text += f"Video Description:\n{description}"
    return Ok(ExtractedText.build(text, "youtube_description", notice=SHALLOW_NOTICE))


# ---------- parsing ----------

def parse_track_list(xml: str) -> List[CaptionTrack]:
    soup = BeautifulSoup(xml or "", "html.parser")
    tracks = []
    for node in soup.find_all("track"):
        lang = (node.get("lang_code") or "").strip()
        if lang:
            tracks.append(CaptionTrack(language_code=lang, display_name=(node.get("name") or "").strip()))
    return tracks


def pick_track(tracks: Sequence[CaptionTrack], preferred: Sequence[str]) -> CaptionTrack:
    """First preferred language present wins (prefix match), else the first track listed."""
    for lang in preferred:
        for track in tracks:
            if track.language_code.startswith(lang):
                return track
    return tracks[0]


def parse_caption_xml(xml: str) -> str:
    soup = BeautifulSoup(xml or "", "html.parser")
    segments = []
    for node in soup.find_all("text"):
        # caption bodies are often entity-escaped twice (&amp;#39;)
        seg = html_lib.unescape(node.get_text()).strip()
        if seg:
            segments.append(seg)
    return " ".join(segments).strip()


def player_response(page_html: str) -> Optional[Dict[str, Any]]:
    m = _PLAYER_RESPONSE_RE.search(page_html or "")
    if not m:
        return None
    try:
        data, _ = json.JSONDecoder().raw_decode(page_html, m.end() - 1)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def player_caption_tracks(page_html: str) -> List[CaptionTrack]:
    data = player_response(page_html) or {}
    raw_tracks = (
        data.get("captions", {})
        .get("playerCaptionsTracklistRenderer", {})
        .get("captionTracks", [])
    )
    tracks = []
    for t in raw_tracks if isinstance(raw_tracks, list) else []:
        if not isinstance(t, dict):
            continue
        name = t.get("name") if isinstance(t.get("name"), dict) else {}
        tracks.append(
            CaptionTrack(
                language_code=t.get("languageCode") or "",
                display_name=name.get("simpleText") or "",
                base_url=t.get("baseUrl"),
            )
        )
    return tracks


def page_title(page_html: str) -> Optional[str]:
    soup = _head_soup(page_html)
    og = soup.find("meta", attrs={"property": "og:title"})
    if og and og.get("content"):
        return og["content"].strip()
    if soup.title and soup.title.string:
        title = soup.title.string.strip().removesuffix(" - YouTube").strip()
        return title or None
    return None


def page_description(page_html: str) -> Optional[str]:
    soup = _head_soup(page_html)
    for attrs in ({"property": "og:description"}, {"name": "description"}, {"name": "og:description"}):
        node = soup.find("meta", attrs=attrs)
        if node and node.get("content"):
            return node["content"].strip()
    return None


def fetch_oembed_title(video_id: str) -> Optional[str]:
    """Title lookup for tier 1. Failure only drops the title line."""
    try:
        resp = requests.get(
            OEMBED_URL,
            params={"url": f"{WATCH_URL}?v={video_id}", "format": "json"},
            timeout=settings.OEMBED_TIMEOUT_SECONDS,
        )
        if not 200 <= resp.status_code < 300:
            return None
        title = resp.json().get("title")
    except (requests.RequestException, ValueError) as e:
        logger.info(f"[captions] oEmbed title lookup failed: {e}")
        return None
    return title.strip() if isinstance(title, str) and title.strip() else None


# ---------- helpers ----------

def _transcript_text(title: Optional[str], transcript: str) -> ExtractedText:
    text = (f"Video Title: {title}\n\n" if title else "") + f"COURSE TRANSCRIPT:\n{transcript}"
    return ExtractedText.build(text, "youtube_transcript")


def _head_soup(page_html: str) -> BeautifulSoup:
    # Metadata lives in <head>; skip parsing the (large) script-heavy body.
    head_end = (page_html or "").find("</head>")
    return BeautifulSoup(page_html[: head_end + 7] if head_end != -1 else (page_html or ""), "html.parser")


def _get(url: str, **kwargs):
    """GET that reports any failure (network, non-2xx, empty body) as a Failure."""
    try:
        resp = requests.get(url, **kwargs)
    except requests.RequestException as e:
        return Failure(f"request to {url} failed: {e}")
    if not 200 <= resp.status_code < 300:
        return Failure(f"{url} answered HTTP {resp.status_code}")
    if not (resp.text or "").strip():
        return Failure(f"{url} returned an empty body")
    return resp
