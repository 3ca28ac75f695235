"""Test utilities shared across test modules."""

import asyncio
import io
import zipfile
from collections.abc import Callable
from pathlib import Path

from PIL import Image

from post_exporter.adapters.content_fetcher import RawContent
from post_exporter.exceptions import ContentFetchError
from post_exporter.models.document import Block, BlockKind, NormalizedDocument


class FakeFetcher:
    """테스트용 ContentFetcher.

    URL별로 HTML, 예외, 지연 시간을 지정할 수 있고 호출 기록과
    최대 동시 실행 수를 남깁니다.
    """

    def __init__(
        self,
        pages: dict[str, str | Exception] | None = None,
        images: dict[str, bytes | Exception] | None = None,
        delays: dict[str, float] | None = None,
        content_type: str = "text/html",
    ) -> None:
        self.pages = pages or {}
        self.images = images or {}
        self.delays = delays or {}
        self.content_type = content_type
        self.fetched: list[str] = []
        self.fetched_bytes: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_fetch: Callable[[str], None] | None = None

    async def fetch(self, url: str) -> RawContent:
        self.fetched.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_fetch is not None:
                self.on_fetch(url)
            await asyncio.sleep(self.delays.get(url, 0))
            page = self.pages.get(url)
            if page is None:
                raise ContentFetchError("Post not found or removed", url=url)
            if isinstance(page, Exception):
                raise page
            return RawContent(url=url, body=page, content_type=self.content_type)
        finally:
            self.in_flight -= 1

    async def fetch_bytes(self, url: str) -> bytes:
        self.fetched_bytes.append(url)
        await asyncio.sleep(self.delays.get(url, 0))
        content = self.images.get(url)
        if content is None:
            raise ContentFetchError("HTTP 404", url=url)
        if isinstance(content, Exception):
            raise content
        return content


def make_post_html(
    title: str,
    paragraphs: list[str] | None = None,
    author: str | None = None,
    extra_body: str = "",
) -> str:
    """간단한 Substack 형태의 포스트 HTML."""
    author_meta = f'<meta name="author" content="{author}">' if author else ""
    body = "".join(f"<p>{p}</p>" for p in (paragraphs or [f"Body of {title}."]))
    return (
        "<html><head>"
        f'<meta property="og:title" content="{title}">'
        f"{author_meta}"
        "</head><body><article>"
        f"<h1>{title}</h1>"
        f'<div class="available-content">{body}{extra_body}</div>'
        "</article></body></html>"
    )


def make_image_bytes(image_format: str = "PNG", size: tuple[int, int] = (4, 4)) -> bytes:
    """Pillow로 작은 테스트 이미지 생성.

    Args:
        image_format: Pillow 포맷 이름 (PNG, JPEG, GIF, ...)
        size: 이미지 크기

    Returns:
        인코딩된 이미지 바이트.
    """
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=image_format)
    return buffer.getvalue()


def read_epub_entries(path: Path) -> dict[str, bytes]:
    """EPUB(zip) 파일의 모든 엔트리 읽기."""
    with zipfile.ZipFile(path) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


def find_entry(entries: dict[str, bytes], suffix: str) -> str:
    """이름이 suffix로 끝나는 엔트리를 UTF-8 문자열로 반환."""
    for name, content in entries.items():
        if name.endswith(suffix):
            return content.decode("utf-8")
    raise KeyError(suffix)


def make_document(
    post_id: str,
    title: str,
    paragraphs: list[str] | None = None,
    **fields: object,
) -> NormalizedDocument:
    """문단만 있는 NormalizedDocument 생성."""
    blocks = [
        Block(kind=BlockKind.PARAGRAPH, text=text)
        for text in (paragraphs or [f"Body of {title}."])
    ]
    return NormalizedDocument(
        post_id=post_id,
        title=title,
        url=f"https://example.substack.com/p/{post_id}",
        blocks=blocks,
        **fields,  # type: ignore[arg-type]
    )
