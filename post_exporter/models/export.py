"""Export job request, configuration and outcome models.

호출자(UI 등)와 엔진 사이의 경계 모델입니다. camelCase JSON을 그대로 받습니다.
"""

from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from post_exporter.models.cover import decode_data_url
from post_exporter.models.publication import PostRef, PublicationRef


class ExportMode(str, Enum):
    """포스트 선택 모드."""

    ENTIRE_PROFILE = "entire_profile"
    SPECIFIC_POSTS = "specific_posts"


class OrderMode(str, Enum):
    """정렬 모드."""

    DATE = "date"
    MANUAL = "manual"


class SortDirection(str, Enum):
    """날짜 정렬 방향."""

    ASC = "asc"
    DESC = "desc"


class ExportFormat(str, Enum):
    """출력 포맷."""

    EPUB = "epub"
    TXT = "txt"


class Granularity(str, Enum):
    """출력 파일 단위."""

    PER_POST = "per_post"
    COMBINED = "combined"


class CoverMode(str, Enum):
    """커버 이미지 출처."""

    PUBLICATION_AUTHOR = "publication_author"
    CUSTOM = "custom"


class MetadataField(str, Enum):
    """헤더 블록에 렌더링할 수 있는 메타데이터 필드."""

    TITLE = "title"
    AUTHOR = "author"
    PUBLISHED_AT = "publishedAt"
    URL = "url"
    TAGS = "tags"
    SUBTITLE = "subtitle"
    READING_TIME = "readingTime"
    SUMMARY = "summary"


class ExportStatus(str, Enum):
    """잡 종료 상태."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_METADATA_FIELDS = [
    MetadataField.TITLE,
    MetadataField.AUTHOR,
    MetadataField.PUBLISHED_AT,
    MetadataField.URL,
    MetadataField.TAGS,
    MetadataField.SUBTITLE,
    MetadataField.SUMMARY,
]

# 이전 클라이언트가 보내는 표기
_SORT_DIRECTION_ALIASES = {"ascending": "asc", "descending": "desc"}
_COVER_MODE_ALIASES = {"substack_author": "publication_author"}


class ExportConfiguration(BaseModel):
    """내보내기 옵션.

    형태(shape)만 여기서 검증하고, 포맷/모드 조합에 따른 필수 여부는
    잡 시작 시 validate_configuration()에서 한 번에 검사합니다.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    mode: ExportMode = ExportMode.ENTIRE_PROFILE
    selected_post_ids: list[str] = Field(default_factory=list)
    order_mode: OrderMode = OrderMode.DATE
    manual_order: list[str] = Field(default_factory=list)
    sort_direction: SortDirection = SortDirection.DESC
    formats: list[ExportFormat] = Field(default_factory=lambda: [ExportFormat.EPUB])
    granularity: Granularity = Granularity.PER_POST
    cover_mode: CoverMode = CoverMode.PUBLICATION_AUTHOR
    custom_cover_image: bytes | None = Field(None, exclude=True, repr=False)
    custom_cover_media_type: str | None = None
    metadata_fields: list[MetadataField] = Field(
        default_factory=lambda: list(DEFAULT_METADATA_FIELDS)
    )
    output_directory: str = Field(
        ...,
        validation_alias=AliasChoices(
            "outputDirectory", "outputDir", "output_directory"
        ),
    )

    @model_validator(mode="before")
    @classmethod
    def decode_custom_cover(cls, data: Any) -> Any:
        """customCoverDataUrl이 있으면 이미지 바이트로 디코딩."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        data_url = data.pop("customCoverDataUrl", None) or data.pop(
            "custom_cover_data_url", None
        )
        if data_url:
            content, media_type = decode_data_url(data_url)
            data.setdefault("custom_cover_image", content)
            data.setdefault("custom_cover_media_type", media_type)
        return data

    @field_validator("sort_direction", mode="before")
    @classmethod
    def normalize_sort_direction(cls, v: Any) -> Any:
        """ascending/descending 표기 허용."""
        if isinstance(v, str):
            return _SORT_DIRECTION_ALIASES.get(v.lower(), v)
        return v

    @field_validator("cover_mode", mode="before")
    @classmethod
    def normalize_cover_mode(cls, v: Any) -> Any:
        """substack_author 표기 허용."""
        if isinstance(v, str):
            return _COVER_MODE_ALIASES.get(v, v)
        return v

    @field_validator("formats", "metadata_fields")
    @classmethod
    def deduplicate(cls, v: list[Any]) -> list[Any]:
        """중복 제거 (순서 유지)."""
        return list(dict.fromkeys(v))

    @property
    def wants_epub(self) -> bool:
        """EPUB 출력 요청 여부."""
        return ExportFormat.EPUB in self.formats


class ExportRequest(BaseModel):
    """호출자 → 엔진 요청."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    publication: PublicationRef
    posts: list[PostRef] = Field(default_factory=list)
    configuration: ExportConfiguration


class ExportFailure(BaseModel):
    """포스트(또는 출력 파일) 단위 실패."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    post_id: str = Field(..., description="포스트 ID 또는 '<format>:<compilation>' 키")
    reason: str


class ExportOutcome(BaseModel):
    """엔진 → 호출자 응답. 잡 종료 시 한 번만 생성됩니다."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: ExportStatus = ExportStatus.COMPLETED
    succeeded: list[str] = Field(default_factory=list)
    failed: list[ExportFailure] = Field(default_factory=list)
    output_files: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def failed_ids(self) -> list[str]:
        """실패한 ID 목록."""
        return [f.post_id for f in self.failed]
