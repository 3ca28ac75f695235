"""EPUB packager.

ebooklib로 EPUB 3 패키지를 생성합니다.

- 스파인: (combined) 타이틀 페이지 → 챕터 (Compilation 순서)
- 내비게이션: 챕터 제목 목록 (중복 제목은 `Title (n)`)
- 이미지: 다운로드된 본문 이미지 포함, 없으면 텍스트 placeholder
- 각주: 챕터 끝 Footnotes 섹션, 본문 참조와 상호 링크
"""

from __future__ import annotations

import html
import re
import uuid
from pathlib import Path

import structlog
from ebooklib import epub

from post_exporter.config.settings import get_settings
from post_exporter.exceptions import PackagingError
from post_exporter.models.cover import CoverAsset, TitlePage
from post_exporter.models.document import Block, BlockKind, NormalizedDocument
from post_exporter.services.assembler import Compilation, CompilationEntry
from post_exporter.services.output_files import atomic_write

logger = structlog.get_logger(__name__)

COVER_ITEM_ID = "cover-img"

STYLESHEET = """
body { font-family: Georgia, "Times New Roman", serif; line-height: 1.7; margin: 0.5em; color: #202020; }
h1 { margin-bottom: 0.6em; }
h2, h3, h4 { margin-top: 1.6em; margin-bottom: 0.6em; }
p { margin: 0 0 1.1em; }
blockquote { margin: 1.2em 0; padding-left: 1em; border-left: 3px solid #cfd5e2; color: #444; }
ul, ol { margin: 0.5em 0 1.2em 1.2em; }
li { margin-bottom: 0.4em; }
.meta { background: #f4f4f4; border: 1px solid #ddd; padding: 0.75em; margin-bottom: 1em; }
.meta p { margin: 0.2em 0; font-size: 0.92em; }
.img-block { margin: 0.5em 0; text-align: center; page-break-inside: avoid; }
.img-block img { max-width: 100%; height: auto; }
.img-block figcaption { font-size: 0.85em; color: #666; font-style: italic; }
.image-placeholder { color: #777; font-style: italic; }
.footnote-ref { text-decoration: none; }
.footnotes { border-top: 1px solid #ddd; margin-top: 2em; padding-top: 1em; }
.footnotes li { margin-bottom: 0.6em; }
.footnote-backref { text-decoration: none; }
.title-page { text-align: center; margin-top: 30%; }
"""

_FOOTNOTE_MARKER = re.compile(r"\[(\d+)\]")


class EpubPackager:
    """Compilation → EPUB 파일."""

    def __init__(self, language: str | None = None) -> None:
        self.language = language or get_settings().EXPORT_LANGUAGE

    def package(
        self, compilation: Compilation, cover: CoverAsset | None, path: Path
    ) -> Path:
        """EPUB 파일 생성 (원자적 쓰기).

        Args:
            compilation: 패키징할 문서 묶음
            cover: 잡 단위 커버 (이미지가 있으면 지정된 커버로 등록)
            path: 출력 경로

        Raises:
            PackagingError: 빈 Compilation이거나 생성/쓰기 실패 시
        """
        if compilation.is_empty:
            raise PackagingError("Compilation has no documents", path=str(path))

        try:
            book = self._build_book(compilation, cover)
        except Exception as e:
            logger.error("epub_build_failed", key=compilation.key, error=str(e))
            raise PackagingError(f"Failed to build EPUB: {e}", path=str(path)) from e

        atomic_write(path, lambda temp_path: epub.write_epub(str(temp_path), book, {}))
        logger.info(
            "epub_written",
            path=str(path),
            key=compilation.key,
            chapters=len(compilation.entries),
        )
        return path

    def _build_book(
        self, compilation: Compilation, cover: CoverAsset | None
    ) -> epub.EpubBook:
        book = epub.EpubBook()
        book.set_identifier(_book_identifier(compilation))
        book.set_title(compilation.title)
        book.set_language(self.language)
        if compilation.author:
            book.add_author(compilation.author)

        css_item = epub.EpubItem(
            uid="style_default",
            file_name="style/default.css",
            media_type="text/css",
            content=STYLESHEET,
        )
        book.add_item(css_item)

        if cover is not None and cover.has_image:
            book.set_cover(cover.file_name, cover.image, create_page=False)
            cover_item = book.get_item_with_id(COVER_ITEM_ID)
            if cover_item is not None and cover.media_type:
                cover_item.media_type = cover.media_type

        self._add_images(book, compilation)

        spine: list[epub.EpubHtml] = []
        if compilation.title_page is not None:
            title_page = epub.EpubHtml(
                uid="title_page",
                title=compilation.title_page.title,
                file_name="title.xhtml",
                lang=self.language,
            )
            title_page.content = _render_title_page(compilation.title_page)
            title_page.add_item(css_item)
            book.add_item(title_page)
            spine.append(title_page)

        chapters: list[epub.EpubHtml] = []
        for entry, chapter_title in zip(
            compilation.entries, unique_chapter_titles(compilation), strict=True
        ):
            chapter = epub.EpubHtml(
                uid=f"chapter_{entry.ordinal:04d}",
                title=chapter_title,
                file_name=f"chapter-{entry.ordinal:04d}.xhtml",
                lang=self.language,
            )
            chapter.content = render_chapter(entry, chapter_title)
            chapter.add_item(css_item)
            book.add_item(chapter)
            chapters.append(chapter)

        book.toc = tuple(chapters)
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = spine + chapters
        return book

    def _add_images(self, book: epub.EpubBook, compilation: Compilation) -> None:
        registered: set[str] = set()
        for entry in compilation.entries:
            for asset in entry.document.images.values():
                if asset.file_name in registered:
                    continue
                registered.add(asset.file_name)
                book.add_item(
                    epub.EpubImage(
                        uid=Path(asset.file_name).stem,
                        file_name=asset.file_name,
                        media_type=asset.media_type,
                        content=asset.content,
                    )
                )


def unique_chapter_titles(compilation: Compilation) -> list[str]:
    """챕터 제목 목록. 중복 제목은 Compilation 순번을 붙여 구분.

    순번을 붙인 제목이 다른 챕터 제목과 겹치면 `Title (n-2)`, `Title (n-3)` ...
    순으로 비어 있는 제목을 찾습니다. 반환되는 제목은 항상 서로 다릅니다.
    """
    display = [entry.document.title or "Untitled" for entry in compilation.entries]
    counts: dict[str, int] = {}
    for title in display:
        counts[title] = counts.get(title, 0) + 1

    # 중복 없는 제목은 그대로 사용하므로 먼저 예약
    used = {title for title in display if counts[title] == 1}
    titles: list[str] = []
    for entry, title in zip(compilation.entries, display, strict=True):
        if counts[title] > 1:
            candidate = f"{title} ({entry.ordinal})"
            suffix = 2
            while candidate in used:
                candidate = f"{title} ({entry.ordinal}-{suffix})"
                suffix += 1
            title = candidate
            used.add(title)
        titles.append(title)
    return titles


def _book_identifier(compilation: Compilation) -> str:
    seed = f"{compilation.key}:{compilation.title}:{compilation.export_format.value}"
    return f"urn:uuid:{uuid.uuid5(uuid.NAMESPACE_URL, seed)}"


# =============================================================================
# XHTML rendering
# =============================================================================


def _render_title_page(title_page: TitlePage) -> str:
    lines = title_page.lines()
    parts = [f"<h1>{html.escape(lines[0])}</h1>"]
    parts.extend(f"<p>{html.escape(line)}</p>" for line in lines[1:])
    return _xhtml(
        title_page.title,
        f'<section class="title-page">{"".join(parts)}</section>',
    )


def render_chapter(entry: CompilationEntry, chapter_title: str) -> str:
    """챕터 XHTML (제목, 메타데이터, 본문, 각주)."""
    document = entry.document
    footnote_numbers = {footnote.number for footnote in document.footnotes}
    referenced: set[int] = set()

    parts = [f"<h1>{html.escape(chapter_title)}</h1>"]
    if entry.metadata:
        rows = "".join(
            f"<p><strong>{html.escape(label)}:</strong> {html.escape(value)}</p>"
            for label, value in entry.metadata
        )
        parts.append(f'<section class="meta">{rows}</section>')

    body = "".join(
        _render_block(block, document, footnote_numbers, referenced)
        for block in document.blocks
    )
    parts.append(f"<section>{body}</section>")

    if document.footnotes:
        items = []
        for footnote in document.footnotes:
            backref = ""
            if footnote.number in referenced:
                backref = (
                    f' <a class="footnote-backref" href="#fnref-{footnote.number}">'
                    "&#8617;</a>"
                )
            items.append(
                f'<li id="fn-{footnote.number}">{html.escape(footnote.text)}{backref}</li>'
            )
        parts.append(
            '<section class="footnotes"><h2>Footnotes</h2>'
            f"<ol>{''.join(items)}</ol></section>"
        )

    return _xhtml(chapter_title, "".join(parts))


def _render_block(
    block: Block,
    document: NormalizedDocument,
    footnote_numbers: set[int],
    referenced: set[int],
) -> str:
    def inline(text: str) -> str:
        return _inline(text, footnote_numbers, referenced)

    if block.kind == BlockKind.HEADING:
        level = min(max(block.level, 2), 6)
        return f"<h{level}>{inline(block.text)}</h{level}>"
    if block.kind == BlockKind.BLOCKQUOTE:
        return f"<blockquote><p>{inline(block.text)}</p></blockquote>"
    if block.kind == BlockKind.LIST:
        tag = "ol" if block.ordered else "ul"
        items = "".join(f"<li>{inline(item)}</li>" for item in block.items)
        return f"<{tag}>{items}</{tag}>"
    if block.kind == BlockKind.IMAGE:
        return _render_image(block, document)
    return f"<p>{inline(block.text)}</p>"


def _render_image(block: Block, document: NormalizedDocument) -> str:
    asset = document.images.get(block.src) if block.src else None
    caption = block.caption or ""
    if asset is None:
        label = caption or block.src or "image"
        return f'<p class="image-placeholder">[Image: {html.escape(label)}]</p>'

    figcaption = f"<figcaption>{html.escape(caption)}</figcaption>" if caption else ""
    return (
        '<figure class="img-block">'
        f'<img src="{html.escape(asset.file_name)}" alt="{html.escape(caption)}"/>'
        f"{figcaption}</figure>"
    )


def _inline(text: str, footnote_numbers: set[int], referenced: set[int]) -> str:
    """텍스트 escape 후 `[n]` 각주 마커를 링크로 변환."""
    escaped = html.escape(text)
    if not footnote_numbers:
        return escaped

    def replace(match: re.Match[str]) -> str:
        number = int(match.group(1))
        if number not in footnote_numbers:
            return match.group(0)
        # 첫 참조에만 id 부여 (id 중복 방지)
        anchor_id = "" if number in referenced else f' id="fnref-{number}"'
        referenced.add(number)
        return (
            f'<a class="footnote-ref"{anchor_id} href="#fn-{number}">'
            f"<sup>{number}</sup></a>"
        )

    return _FOOTNOTE_MARKER.sub(replace, escaped)


def _xhtml(title: str, body: str) -> str:
    return (
        '<html xmlns="http://www.w3.org/1999/xhtml">'
        f"<head><title>{html.escape(title)}</title></head>"
        f"<body>{body}</body></html>"
    )
