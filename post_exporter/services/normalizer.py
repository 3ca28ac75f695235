"""Content normalizer.

가져온 포스트 원문(HTML 또는 JSON payload)을 NormalizedDocument로 변환합니다.
메타데이터 추출 → 본문 컨테이너 선택 → 각주 분리 → 블록 분해 순서로 동작합니다.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

import structlog
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from post_exporter.adapters.content_fetcher import RawContent
from post_exporter.config.settings import get_settings
from post_exporter.exceptions import ContentParseError
from post_exporter.models.document import (
    Block,
    BlockKind,
    NormalizedDocument,
    parse_published_at,
)
from post_exporter.models.publication import PostRef, PublicationRef
from post_exporter.services.footnotes import extract_footnotes

logger = structlog.get_logger(__name__)

# 본문 컨테이너 후보 (우선순위 순)
BODY_SELECTORS = [
    ".available-content",
    "article .body",
    "article .markup",
    ".body.markup",
    "article",
    "main",
    "body",
]

NOISE_TAGS = [
    "script",
    "style",
    "noscript",
    "iframe",
    "video",
    "audio",
    "form",
    "button",
    "svg",
    "nav",
    "footer",
    "aside",
]

HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
BLOCK_TAGS = HEADING_TAGS | {
    "p",
    "blockquote",
    "ul",
    "ol",
    "figure",
    "img",
    "pre",
    "div",
    "section",
    "article",
    "table",
    "hr",
}

_READING_TIME_PATTERN = re.compile(r"(\d+)\s*min(?:ute)?s?\s+read", re.IGNORECASE)
_IGNORED_AUTHORS = {"substack", "unknown"}


class ContentNormalizer:
    """포스트 원문 정규화기.

    상태를 갖지 않으므로 여러 포스트를 동시에 처리해도 안전합니다.
    """

    def __init__(self, words_per_minute: int | None = None) -> None:
        """ContentNormalizer 초기화.

        Args:
            words_per_minute: 읽기 시간 추정 기준 (기본: EXPORT_WORDS_PER_MINUTE)
        """
        self.words_per_minute = (
            words_per_minute or get_settings().EXPORT_WORDS_PER_MINUTE
        )

    def normalize(
        self,
        post: PostRef,
        raw: RawContent,
        publication: PublicationRef | None = None,
    ) -> NormalizedDocument:
        """원문을 NormalizedDocument로 변환.

        Args:
            post: 포스트 참조 (fallback 메타데이터)
            raw: content-fetch collaborator가 반환한 원문
            publication: 퍼블리케이션 (작성자 fallback)

        Returns:
            정규화된 문서

        Raises:
            ContentParseError: 블록 요소를 하나도 추출할 수 없는 경우
        """
        if raw.is_json:
            return self._normalize_payload(post, raw, publication)
        return self._normalize_html(post, raw.body, publication)

    # ========================================================================
    # HTML
    # ========================================================================

    def _normalize_html(
        self,
        post: PostRef,
        html: str,
        publication: PublicationRef | None,
        overrides: dict[str, Any] | None = None,
    ) -> NormalizedDocument:
        if not html or not html.strip():
            raise ContentParseError("Empty post content", post_id=post.id)

        try:
            soup = BeautifulSoup(html, "lxml")
        except Exception as e:
            raise ContentParseError(f"Malformed markup: {e}", post_id=post.id) from e

        overrides = overrides or {}
        title = (
            overrides.get("title")
            or _meta_property(soup, "og:title")
            or _first_text(soup, "h1")
            or post.title
        )
        author = (
            post.author
            or _extract_author(soup)
            or (publication.author if publication else None)
        )
        published_raw = (
            overrides.get("published_at")
            or _meta_property(soup, "article:published_time")
            or post.published_at
        )
        tags = (
            overrides.get("tags")
            or _meta_values(soup, "article:tag")
            or list(post.tags or [])
        )
        subtitle = (
            post.subtitle
            or overrides.get("subtitle")
            or _meta_property(soup, "og:description")
        )
        summary = (
            post.summary
            or overrides.get("summary")
            or _meta_name(soup, "description")
        )
        reading_time = _parse_reading_time(soup.get_text(" "))

        container = _select_body(soup)
        if container is None:
            raise ContentParseError("No article body found", post_id=post.id)

        for noise in container.find_all(NOISE_TAGS):
            noise.decompose()

        footnotes = extract_footnotes(container)
        blocks: list[Block] = []
        _collect_blocks(container, blocks)
        if not blocks:
            raise ContentParseError(
                "Content could not be decomposed into blocks", post_id=post.id
            )

        document = NormalizedDocument(
            post_id=post.id,
            title=_clean(title) or post.title,
            url=post.url,
            author=author,
            published_at=parse_published_at(published_raw) or published_raw or None,
            tags=[t for t in (_clean(t) for t in tags) if t],
            subtitle=_clean(subtitle) if subtitle else None,
            summary=_clean(summary) if summary else None,
            blocks=blocks,
            footnotes=footnotes,
        )
        document.reading_time_minutes = (
            overrides.get("reading_time") or reading_time or self._estimate(document)
        )

        logger.debug(
            "post_normalized",
            post_id=post.id,
            blocks=len(blocks),
            footnotes=len(footnotes),
            images=len(document.image_sources()),
        )
        return document

    # ========================================================================
    # Structured payload (post API JSON)
    # ========================================================================

    def _normalize_payload(
        self,
        post: PostRef,
        raw: RawContent,
        publication: PublicationRef | None,
    ) -> NormalizedDocument:
        try:
            payload = json.loads(raw.body)
        except json.JSONDecodeError as e:
            raise ContentParseError(f"Malformed JSON payload: {e}", post_id=post.id) from e

        if not isinstance(payload, dict) or not payload.get("body_html"):
            raise ContentParseError("Payload has no body_html", post_id=post.id)

        overrides: dict[str, Any] = {
            "title": _payload_text(payload, "title"),
            "subtitle": _payload_text(payload, "subtitle"),
            "summary": _payload_text(payload, "description"),
            "published_at": _payload_text(payload, "post_date", "published_at"),
            "tags": [
                tag.get("name", "") if isinstance(tag, dict) else str(tag)
                for tag in payload.get("postTags") or []
            ],
        }
        wordcount = payload.get("wordcount")
        if isinstance(wordcount, int) and wordcount > 0:
            overrides["reading_time"] = max(1, math.ceil(wordcount / self.words_per_minute))

        return self._normalize_html(post, payload["body_html"], publication, overrides)

    def _estimate(self, document: NormalizedDocument) -> int:
        return max(1, math.ceil(document.word_count() / self.words_per_minute))


def _payload_text(payload: dict[str, Any], *keys: str) -> str | None:
    """payload에서 첫 번째로 값이 있는 키를 문자열로 반환 (숫자 등은 str 변환)."""
    for key in keys:
        value = payload.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


# ============================================================================
# Block decomposition
# ============================================================================


def _collect_blocks(node: Tag, blocks: list[Block]) -> None:
    """요소 트리를 순회하며 블록 추출 (래퍼 요소는 재귀)."""
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            text = _clean(str(child))
            if text:
                blocks.append(Block(kind=BlockKind.PARAGRAPH, text=text))
            continue
        if not isinstance(child, Tag):
            continue

        name = child.name
        if name in HEADING_TAGS:
            text = _inline_text(child)
            if text:
                blocks.append(Block(kind=BlockKind.HEADING, text=text, level=int(name[1])))
        elif name == "p":
            _append_paragraph(child, blocks)
        elif name == "blockquote":
            text = _block_text(child)
            if text:
                blocks.append(Block(kind=BlockKind.BLOCKQUOTE, text=text))
        elif name in ("ul", "ol"):
            items = tuple(
                item
                for item in (_inline_text(li) for li in child.find_all("li", recursive=False))
                if item
            )
            if items:
                blocks.append(Block(kind=BlockKind.LIST, items=items, ordered=name == "ol"))
        elif name == "figure":
            _append_figure(child, blocks)
        elif name == "img":
            image = _image_block(child)
            if image:
                blocks.append(image)
        elif name == "pre":
            text = child.get_text().strip("\n")
            if text.strip():
                blocks.append(Block(kind=BlockKind.PARAGRAPH, text=text))
        elif name in ("hr", "br"):
            continue
        elif child.find(BLOCK_TAGS) is None:
            # 블록 요소가 없는 래퍼 (span, b, div 등)는 한 문단으로 처리
            text = _inline_text(child)
            if text:
                blocks.append(Block(kind=BlockKind.PARAGRAPH, text=text))
        else:
            _collect_blocks(child, blocks)


def _append_paragraph(element: Tag, blocks: list[Block]) -> None:
    """문단 추가. 문단 안의 이미지는 위치를 유지한 채 텍스트를 나눕니다."""
    if element.find("img") is None:
        text = _inline_text(element)
        if text:
            blocks.append(Block(kind=BlockKind.PARAGRAPH, text=text))
        return

    parts: list[str] = []

    def flush() -> None:
        text = _clean("".join(parts))
        if text:
            blocks.append(Block(kind=BlockKind.PARAGRAPH, text=text))
        parts.clear()

    for node in element.descendants:
        if isinstance(node, Tag) and node.name == "img":
            flush()
            image = _image_block(node)
            if image:
                blocks.append(image)
        elif isinstance(node, NavigableString) and not isinstance(node, Comment):
            parts.append(str(node))
    flush()


def _append_figure(element: Tag, blocks: list[Block]) -> None:
    caption_tag = element.find("figcaption")
    caption = _inline_text(caption_tag) if caption_tag else None
    img = element.find("img")
    if img is None:
        if caption:
            blocks.append(Block(kind=BlockKind.PARAGRAPH, text=caption))
        return
    image = _image_block(img, caption=caption)
    if image:
        blocks.append(image)


def _image_block(img: Tag, caption: str | None = None) -> Block | None:
    src = img.get("src") or img.get("data-src")
    if not isinstance(src, str) or not src.strip():
        return None
    alt = img.get("alt")
    return Block(
        kind=BlockKind.IMAGE,
        src=src.strip(),
        caption=caption or (_clean(alt) if isinstance(alt, str) and alt.strip() else None),
    )


def _block_text(element: Tag) -> str:
    """여러 문단을 포함할 수 있는 요소의 텍스트 (문단은 줄바꿈으로 구분)."""
    paragraphs = [_inline_text(p) for p in element.find_all("p")]
    paragraphs = [p for p in paragraphs if p]
    if paragraphs:
        return "\n".join(paragraphs)
    return _inline_text(element)


def _inline_text(element: Tag) -> str:
    return _clean(element.get_text())


def _clean(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.split())


# ============================================================================
# Metadata helpers
# ============================================================================


def _select_body(soup: BeautifulSoup) -> Tag | None:
    for selector in BODY_SELECTORS:
        element = soup.select_one(selector)
        if element is not None and element.get_text(strip=True):
            return element
    return None


def _meta_property(soup: BeautifulSoup, prop: str) -> str | None:
    meta = soup.find("meta", attrs={"property": prop})
    if meta and meta.get("content", "").strip():
        return meta["content"].strip()
    return None


def _meta_name(soup: BeautifulSoup, name: str) -> str | None:
    meta = soup.find("meta", attrs={"name": name})
    if meta and meta.get("content", "").strip():
        return meta["content"].strip()
    return None


def _meta_values(soup: BeautifulSoup, prop: str) -> list[str]:
    return [
        meta["content"].strip()
        for meta in soup.find_all("meta", attrs={"property": prop})
        if meta.get("content", "").strip()
    ]


def _first_text(soup: BeautifulSoup, selector: str) -> str | None:
    element = soup.select_one(selector)
    if element is None:
        return None
    return _clean(element.get_text()) or None


def _extract_author(soup: BeautifulSoup) -> str | None:
    """작성자 추출.

    우선순위:
    1. meta author / parsely-author / article:author
    2. itemprop, rel=author, Substack byline
    3. JSON-LD author
    """
    candidates = [
        _meta_name(soup, "author"),
        _meta_name(soup, "parsely-author"),
        _meta_property(soup, "article:author"),
        _meta_property(soup, "og:article:author"),
        _first_text(soup, "[itemprop='author']"),
        _first_text(soup, "a[rel='author']"),
        _first_text(soup, ".pencraft .byline-name"),
        _first_text(soup, ".post-meta .author"),
        _author_from_json_ld(soup),
    ]
    for candidate in candidates:
        cleaned = _clean(candidate)
        if cleaned and cleaned.lower() not in _IGNORED_AUTHORS:
            return cleaned
    return None


def _author_from_json_ld(soup: BeautifulSoup) -> str | None:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        body = script.string or script.get_text()
        if not body or not body.strip():
            continue
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            continue
        names: list[str] = []
        _collect_author_names(parsed, names)
        for name in names:
            if _clean(name):
                return _clean(name)
    return None


def _collect_author_names(value: Any, output: list[str]) -> None:
    if isinstance(value, dict):
        author = value.get("author")
        if isinstance(author, str):
            output.append(author)
        elif isinstance(author, dict) and isinstance(author.get("name"), str):
            output.append(author["name"])
        elif isinstance(author, list):
            output.extend(
                item["name"]
                for item in author
                if isinstance(item, dict) and isinstance(item.get("name"), str)
            )
        for child in value.values():
            _collect_author_names(child, output)
    elif isinstance(value, list):
        for item in value:
            _collect_author_names(item, output)


def _parse_reading_time(text: str) -> int | None:
    match = _READING_TIME_PATTERN.search(text)
    if not match:
        return None
    minutes = int(match.group(1))
    return minutes if minutes > 0 else None
