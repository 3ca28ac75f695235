"""Document assembler.

정렬된 문서들을 출력 단위(Compilation)로 묶습니다.
per_post는 문서마다 하나, combined는 전체를 하나로 묶습니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from post_exporter.models.cover import CoverAsset, TitlePage
from post_exporter.models.document import NormalizedDocument
from post_exporter.models.export import ExportFormat, Granularity, MetadataField
from post_exporter.models.publication import PublicationRef

logger = structlog.get_logger(__name__)

COMBINED_KEY = "combined"

# 헤더 블록의 고정 필드 순서와 라벨
METADATA_LABELS: dict[MetadataField, str] = {
    MetadataField.TITLE: "Title",
    MetadataField.AUTHOR: "Author",
    MetadataField.PUBLISHED_AT: "Published",
    MetadataField.URL: "URL",
    MetadataField.TAGS: "Tags",
    MetadataField.SUBTITLE: "Subtitle",
    MetadataField.READING_TIME: "Reading time",
    MetadataField.SUMMARY: "Summary",
}

MISSING_VALUE = "N/A"
UNKNOWN_AUTHOR = "Unknown"


@dataclass(frozen=True)
class CompilationEntry:
    """Compilation에 포함된 문서 하나."""

    document: NormalizedDocument
    ordinal: int
    """Compilation 내 1부터 시작하는 순번"""

    metadata: list[tuple[str, str]] = field(default_factory=list)
    """(라벨, 값) 헤더 줄 (선택된 필드만)"""


@dataclass
class Compilation:
    """하나의 출력 파일로 패키징될 문서 묶음."""

    key: str
    """per_post: 포스트 ID, combined: 'combined'"""

    export_format: ExportFormat
    title: str
    author: str | None
    label: str
    """파일명에 사용할 이름 (포스트 제목 또는 'combined')"""

    entries: list[CompilationEntry] = field(default_factory=list)
    title_page: TitlePage | None = None
    """combined에만 존재하는 생성된 타이틀 페이지"""

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def extension(self) -> str:
        return self.export_format.value


class DocumentAssembler:
    """문서를 Compilation으로 조립."""

    def assemble(
        self,
        documents: list[NormalizedDocument],
        export_format: ExportFormat,
        granularity: Granularity,
        publication: PublicationRef,
        metadata_fields: list[MetadataField],
        cover: CoverAsset | None = None,
    ) -> list[Compilation]:
        """Compilation 목록 생성.

        Args:
            documents: 최종 순서대로 정렬된 성공 문서
            export_format: 대상 포맷
            granularity: 출력 단위
            publication: 퍼블리케이션 (combined 제목/작성자)
            metadata_fields: 헤더에 렌더링할 필드
            cover: 잡 단위 커버 (타이틀 페이지 텍스트)

        Returns:
            per_post: 문서 수만큼, combined: 정확히 1개 (비어 있을 수 있음)
        """
        if granularity == Granularity.PER_POST:
            compilations = [
                Compilation(
                    key=document.post_id,
                    export_format=export_format,
                    title=document.title,
                    author=document.author or publication.author,
                    label=document.title,
                    entries=[_entry(document, 1, metadata_fields)],
                )
                for document in documents
            ]
        else:
            title_page = (
                cover.title_page
                if cover is not None
                else TitlePage(title=publication.title, author=publication.author)
            )
            compilations = [
                Compilation(
                    key=COMBINED_KEY,
                    export_format=export_format,
                    title=publication.title,
                    author=publication.author,
                    label=COMBINED_KEY,
                    entries=[
                        _entry(document, ordinal, metadata_fields)
                        for ordinal, document in enumerate(documents, start=1)
                    ],
                    title_page=title_page,
                )
            ]

        logger.debug(
            "compilations_assembled",
            export_format=export_format.value,
            granularity=granularity.value,
            count=len(compilations),
            documents=len(documents),
        )
        return compilations


def _entry(
    document: NormalizedDocument, ordinal: int, metadata_fields: list[MetadataField]
) -> CompilationEntry:
    return CompilationEntry(
        document=document,
        ordinal=ordinal,
        metadata=metadata_lines(document, metadata_fields),
    )


def metadata_lines(
    document: NormalizedDocument, metadata_fields: list[MetadataField]
) -> list[tuple[str, str]]:
    """선택된 필드만 고정 순서로 (라벨, 값) 목록 생성.

    선택되었지만 값이 없는 필드는 'N/A' (작성자는 'Unknown').
    """
    selected = set(metadata_fields)
    return [
        (label, _field_value(document, metadata_field))
        for metadata_field, label in METADATA_LABELS.items()
        if metadata_field in selected
    ]


def _field_value(document: NormalizedDocument, metadata_field: MetadataField) -> str:
    if metadata_field == MetadataField.TITLE:
        return document.title
    if metadata_field == MetadataField.AUTHOR:
        return document.author or UNKNOWN_AUTHOR
    if metadata_field == MetadataField.PUBLISHED_AT:
        return format_published_at(document.published_at)
    if metadata_field == MetadataField.URL:
        return document.url or MISSING_VALUE
    if metadata_field == MetadataField.TAGS:
        return ", ".join(document.tags) if document.tags else MISSING_VALUE
    if metadata_field == MetadataField.SUBTITLE:
        return document.subtitle or MISSING_VALUE
    if metadata_field == MetadataField.READING_TIME:
        if document.reading_time_minutes is None:
            return MISSING_VALUE
        return f"{document.reading_time_minutes} min"
    return document.summary or MISSING_VALUE


def format_published_at(value: datetime | str | None) -> str:
    """발행 시각 표시 문자열 (파싱 실패한 원문은 그대로)."""
    if value is None or value == "":
        return MISSING_VALUE
    if isinstance(value, datetime):
        return value.isoformat()
    return value
