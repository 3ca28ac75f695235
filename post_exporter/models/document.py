"""Canonical, format-agnostic document model for one post.

Content Normalizer가 생성하고, 한 번의 내보내기 동안 Assembler가 소유합니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum


class BlockKind(str, Enum):
    """본문 블록 종류."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    IMAGE = "image"
    BLOCKQUOTE = "blockquote"
    LIST = "list"


@dataclass(frozen=True)
class Block:
    """본문 블록 요소.

    각주 참조는 text 안에 `[n]` 마커로 남습니다.
    """

    kind: BlockKind
    text: str = ""

    level: int = 0
    """heading 레벨 (1-6)"""

    items: tuple[str, ...] = ()
    """list 항목"""

    ordered: bool = False

    src: str | None = None
    """image 원본 URL"""

    caption: str | None = None
    """image 캡션 또는 alt 텍스트"""


@dataclass(frozen=True)
class Footnote:
    """각주 (1부터 문서 순서대로 번호 부여)."""

    number: int
    text: str


@dataclass(frozen=True)
class ImageAsset:
    """EPUB에 포함할 이미지 바이너리."""

    file_name: str
    media_type: str
    content: bytes


@dataclass
class NormalizedDocument:
    """정규화된 포스트 문서."""

    post_id: str
    title: str
    url: str
    author: str | None = None
    published_at: datetime | str | None = None
    tags: list[str] = field(default_factory=list)
    subtitle: str | None = None
    summary: str | None = None
    reading_time_minutes: int | None = None
    blocks: list[Block] = field(default_factory=list)
    footnotes: list[Footnote] = field(default_factory=list)

    images: dict[str, ImageAsset] = field(default_factory=dict)
    """원본 이미지 URL → 다운로드된 이미지"""

    def image_sources(self) -> list[str]:
        """본문 이미지 URL 목록 (중복 제거, 순서 유지)."""
        sources = [b.src for b in self.blocks if b.kind == BlockKind.IMAGE and b.src]
        return list(dict.fromkeys(sources))

    def word_count(self) -> int:
        """본문 단어 수."""
        total = 0
        for block in self.blocks:
            total += len(block.text.split())
            for item in block.items:
                total += len(item.split())
        return total


def parse_published_at(value: str | None) -> datetime | None:
    """발행 시각 문자열 파싱 (ISO-8601 → RFC 2822 순서).

    타임존이 없으면 UTC로 간주합니다. 문자열이 아니거나 파싱할 수 없으면 None.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()

    parsed: datetime | None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def sort_timestamp(value: str | None) -> float:
    """정렬용 타임스탬프. 파싱 불가한 값은 0 (가장 이른 값)."""
    parsed = parse_published_at(value)
    if parsed is None:
        return 0.0
    return parsed.timestamp()
