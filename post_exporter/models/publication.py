"""Publication and post references supplied by the caller.

엔진은 이 모델들을 읽기만 하며 변경하지 않습니다.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PublicationRef(BaseModel):
    """내보낼 퍼블리케이션 정보."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    url: str = Field(..., description="퍼블리케이션 URL")
    title: str = Field(..., description="퍼블리케이션 제목")
    author: str | None = Field(None, description="작성자 이름")
    author_cover_url: str | None = Field(None, description="작성자 커버 이미지 URL")


class PostRef(BaseModel):
    """포스트 목록의 한 항목."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "148213094",
                "title": "On Writing Long Posts",
                "publishedAt": "2024-05-01T12:00:00Z",
                "url": "https://example.substack.com/p/on-writing-long-posts",
                "tags": ["writing"],
            }
        },
    )

    id: str = Field(..., description="안정적인 포스트 ID")
    title: str = Field(..., description="포스트 제목")
    published_at: str = Field("", description="발행 시각 (ISO-8601, 파싱 불가 가능)")
    url: str = Field(..., description="정규 URL")
    author: str | None = Field(None, description="작성자 오버라이드")
    cover_image_url: str | None = Field(None, description="포스트 커버 이미지 URL")
    tags: list[str] | None = Field(None, description="태그 목록")
    subtitle: str | None = Field(None, description="부제")
    summary: str | None = Field(None, description="요약")
