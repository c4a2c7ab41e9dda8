"""quizforge/services/webpage.py

URL sources: YouTube links go to the caption cascade, everything else is
fetched as a regular page and reduced to its main readable text.

Main-text extraction runs as an ordered chain:
1. first dense content container (article, main, CMS content blocks) > 200 chars
2. headings / paragraphs / list items / cells longer than 30 chars
3. naive tag strip when the HTML parser itself blows up
"""

from __future__ import annotations

import html as html_lib
import re
from typing import Optional

import requests
from bs4 import BeautifulSoup
from loguru import logger

from ..errors import NoExtractableText, SourceUnreachable
from ..settings import settings
from . import captions
from .fallback import Failure, Ok, first_success
from .text import ExtractedText

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PAGE_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

NOISE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "form", "iframe", "noscript"]
CONTENT_SELECTORS = ["article", "main", '[role="main"]', ".post-content", ".entry-content", "#content", ".content"]
TEXT_BLOCK_SELECTOR = "h1, h2, h3, h4, p, li, blockquote, td, pre"

MIN_CONTAINER_CHARS = 200
MIN_BLOCK_CHARS = 30

YOUTUBE_ID_PATTERNS = [
    re.compile(r"youtube\.com/watch\?.*?v=([A-Za-z0-9_-]{11})"),
    re.compile(r"youtu\.be/([A-Za-z0-9_-]{11})"),
    re.compile(r"youtube\.com/(?:embed|shorts|live)/([A-Za-z0-9_-]{11})"),
]

NO_TEXT_MESSAGE = "Could not extract readable text from this URL. The page may be mostly JavaScript or images."
CONNECT_MESSAGE = "Could not connect to the URL. Check the address and try again."


def youtube_video_id(url: str) -> Optional[str]:
    for pattern in YOUTUBE_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    return None


def extract_from_url(address: str) -> ExtractedText:
    address = address.strip()
    video_id = youtube_video_id(address)
    logger.info(f"[webpage] url={address}" + (f" -> youtube id {video_id}" if video_id else ""))
    if video_id:
        return captions.resolve(video_id)
    return extract_webpage(address)


def extract_webpage(url: str) -> ExtractedText:
    try:
        response = requests.get(url, headers=PAGE_HEADERS, timeout=settings.WEBPAGE_TIMEOUT_SECONDS)
    except (requests.ConnectionError, requests.Timeout) as e:
        logger.warning(f"[webpage] connection failed for {url}: {e}")
        raise SourceUnreachable(CONNECT_MESSAGE) from e
    except requests.RequestException as e:
        logger.warning(f"[webpage] request failed for {url}: {e}")
        raise SourceUnreachable(f"Failed to fetch URL: {e}") from e

    status = response.status_code
    if not 200 <= status < 300:
        logger.warning(f"[webpage] {url} answered HTTP {status}")
        raise SourceUnreachable(
            f"URL not accessible (HTTP {status}). Some websites block automated access.",
            upstream_status=status,
        )

    extracted = ExtractedText.build(extract_main_text(response.text), "webpage")
    if not extracted.text:
        raise NoExtractableText(NO_TEXT_MESSAGE)

    logger.info(f"[webpage] extracted {extracted.length} chars")
    return extracted


# ---------- HTML -> text ----------

def extract_main_text(page_html: str) -> str:
    try:
        soup = BeautifulSoup(page_html, "html.parser")
        for tag in soup.find_all(NOISE_TAGS):
            if not tag.decomposed:  # nested inside an already removed tag
                tag.decompose()
    except Exception as e:
        logger.warning(f"[webpage] HTML parser failed, stripping tags: {e}")
        return strip_tags(page_html)

    outcome = first_success(
        soup,
        [("content-container", _content_container), ("text-blocks", _text_blocks)],
        label="webpage",
    )
    return outcome.value if isinstance(outcome, Ok) else ""


def _content_container(soup: BeautifulSoup, _previous: Optional[Failure]):
    for selector in CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        text = node.get_text().strip()
        if len(text) > MIN_CONTAINER_CHARS:
            return Ok(text)
    return Failure(f"no container with more than {MIN_CONTAINER_CHARS} chars")


def _text_blocks(soup: BeautifulSoup, _previous: Optional[Failure]):
    parts = []
    for node in soup.select(TEXT_BLOCK_SELECTOR):
        t = node.get_text().strip()
        if len(t) > MIN_BLOCK_CHARS:
            parts.append(t)
    if not parts:
        return Failure("no text blocks")
    return Ok("\n\n".join(parts))


def strip_tags(page_html: str) -> str:
    text = re.sub(r"(?is)<(script|style)\b.*?</\1>", " ", page_html or "")
    text = re.sub(r"<[^>]+>", "", text)
    return html_lib.unescape(text)
