from __future__ import annotations

import logging
import math
import re
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from dashboard.app.domain.models import ArticleContent, ReadingTime, UrlMetadata

from .errors import EmptyContentError, FetchFailedError, MissingParameterError
from .http import BOT_USER_AGENT, BROWSER_HEADERS, fetch_text

logger = logging.getLogger(__name__)

CHAR_THRESHOLD = 20
EXCERPT_LENGTH = 200
WORDS_PER_MINUTE = 200

FALLBACK_SELECTORS = (
    "article",
    "main",
    ".article",
    ".post",
    ".content",
    "#content",
    "#main",
    ".main-content",
    "[role=main]",
)

_FALLBACK_STRIP_TAGS = ["script", "style", "meta", "link", "noscript", "iframe"]
_WHITESPACE = re.compile(r"\s+")


def _normalize_text(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def readability_extract(html: str) -> ArticleContent | None:
    """Isolate the main article container of a page with readability-lxml.

    Returns None when the page does not parse or the extracted content carries
    fewer than CHAR_THRESHOLD chars of text.
    """
    document = Document(html)
    try:
        summary = document.summary(html_partial=True)
        short_title = document.short_title()
    except Unparseable as exc:
        logger.info("content.readability_unparseable error=%s", exc)
        return None

    text_content = visible_text(summary)
    if len(text_content) < CHAR_THRESHOLD:
        return None

    page = BeautifulSoup(html, "html.parser")
    excerpt = _meta_content(page, name="description") or _meta_content(page, property="og:description")
    if not excerpt:
        first = BeautifulSoup(summary, "html.parser").find("p")
        excerpt = _normalize_text(first.get_text()) if first else ""

    return ArticleContent(
        content=f'<div id="readability-page-1" class="page">{summary}</div>',
        text_content=text_content,
        length=len(text_content),
        title=_meta_content(page, property="og:title") or short_title or None,
        excerpt=excerpt or None,
    )


def fallback_extract(html: str) -> ArticleContent:
    """Selector-based extraction used when the readability pass finds nothing."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_FALLBACK_STRIP_TAGS):
        if not tag.decomposed:
            tag.decompose()

    content = ""
    for selector in FALLBACK_SELECTORS:
        match = soup.select_one(selector)
        if match is not None:
            content = match.decode_contents()
            break
    if not content.strip() and soup.body is not None:
        content = soup.body.decode_contents()

    text_content = BeautifulSoup(content, "html.parser").get_text().strip()
    title = soup.title.get_text() if soup.title else ""
    return ArticleContent(
        content=content,
        text_content=text_content,
        length=len(content),
        title=title or "Untitled",
        excerpt=text_content[:EXCERPT_LENGTH],
    )


def parse_article(html: str) -> ArticleContent:
    article = readability_extract(html)
    if article is None or article.is_empty:
        logger.info("content.readability_miss fallback=selectors")
        return fallback_extract(html)
    return article


def extract_article(url: str, *, client: httpx.Client | None = None) -> ArticleContent:
    if not url or not url.strip():
        raise MissingParameterError("URL parameter is required")

    try:
        html = fetch_text(url, headers=BROWSER_HEADERS, client=client)
    except FetchFailedError as exc:
        raise FetchFailedError(f"Failed to fetch URL: {exc}", status_code=exc.status_code) from exc

    if not html or not html.strip():
        raise EmptyContentError("Empty response from server")

    article = parse_article(html)
    logger.info("content.article_ok url=%s length=%d", url, article.length)
    return article


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    return (tag.get("content") or "") if tag else ""


def parse_metadata(html: str) -> UrlMetadata:
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text() if soup.title else ""
    image_link = soup.find("link", rel="image_src")
    return UrlMetadata(
        title=title or _meta_content(soup, property="og:title"),
        description=(
            _meta_content(soup, name="description")
            or _meta_content(soup, property="og:description")
        ),
        image=(
            _meta_content(soup, property="og:image")
            or _meta_content(soup, name="twitter:image")
            or ((image_link.get("href") or "") if image_link else "")
        ),
    )


def extract_metadata(url: str, *, client: httpx.Client | None = None) -> UrlMetadata:
    if not url or not url.strip():
        raise MissingParameterError("URL parameter is required")

    try:
        html = fetch_text(url, headers={"User-Agent": BOT_USER_AGENT}, client=client)
    except FetchFailedError as exc:
        raise FetchFailedError(f"Failed to fetch URL: {exc}", status_code=exc.status_code) from exc
    return parse_metadata(html)


def visible_text(html: str) -> str:
    return _normalize_text(BeautifulSoup(html or "", "html.parser").get_text(" "))


def reading_time(html: str) -> ReadingTime:
    """Estimate reading time of an HTML body at 200 words per minute, minimum 1."""
    text = visible_text(html)
    words = len(text.split()) if text else 0
    return ReadingTime(words=words, minutes=max(1, math.ceil(words / WORDS_PER_MINUTE)))


def extract_domain(url: str) -> str:
    """Hostname without a leading `www.`, or the input when it does not parse."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return url
    if not host:
        return url
    return re.sub(r"^www\.", "", host)
