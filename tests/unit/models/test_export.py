"""Tests for export request/configuration/outcome models."""

import base64

import pytest
from pydantic import ValidationError

from post_exporter.models.export import (
    DEFAULT_METADATA_FIELDS,
    CoverMode,
    ExportConfiguration,
    ExportFailure,
    ExportFormat,
    ExportMode,
    ExportOutcome,
    ExportRequest,
    ExportStatus,
    Granularity,
    MetadataField,
    OrderMode,
    SortDirection,
)


class TestEnums:
    """Tests for export enums."""

    def test_wire_values(self) -> None:
        """호출자와 주고받는 문자열 값 확인."""
        assert ExportMode.ENTIRE_PROFILE == "entire_profile"
        assert ExportMode.SPECIFIC_POSTS == "specific_posts"
        assert OrderMode.MANUAL == "manual"
        assert SortDirection.ASC == "asc"
        assert SortDirection.DESC == "desc"
        assert ExportFormat.TXT == "txt"
        assert Granularity.COMBINED == "combined"
        assert CoverMode.PUBLICATION_AUTHOR == "publication_author"
        assert MetadataField.PUBLISHED_AT == "publishedAt"
        assert MetadataField.READING_TIME == "readingTime"
        assert ExportStatus.CANCELLED == "cancelled"

    def test_default_metadata_fields_exclude_reading_time(self) -> None:
        """기본 메타데이터 필드에는 readingTime이 없음."""
        assert MetadataField.READING_TIME not in DEFAULT_METADATA_FIELDS
        assert len(DEFAULT_METADATA_FIELDS) == 7


class TestExportConfiguration:
    """Tests for ExportConfiguration."""

    def test_defaults(self) -> None:
        """출력 디렉터리만 주면 기본값으로 채워짐."""
        config = ExportConfiguration(output_directory="/tmp/out")

        assert config.mode == ExportMode.ENTIRE_PROFILE
        assert config.order_mode == OrderMode.DATE
        assert config.sort_direction == SortDirection.DESC
        assert config.formats == [ExportFormat.EPUB]
        assert config.granularity == Granularity.PER_POST
        assert config.cover_mode == CoverMode.PUBLICATION_AUTHOR
        assert config.custom_cover_image is None
        assert config.metadata_fields == DEFAULT_METADATA_FIELDS
        assert config.wants_epub is True

    def test_output_directory_required(self) -> None:
        """출력 디렉터리는 필수."""
        with pytest.raises(ValidationError):
            ExportConfiguration()

    def test_camel_case_payload(self) -> None:
        """camelCase JSON 입력 처리."""
        config = ExportConfiguration.model_validate(
            {
                "mode": "specific_posts",
                "selectedPostIds": ["a", "b"],
                "orderMode": "manual",
                "manualOrder": ["b", "a"],
                "sortDirection": "asc",
                "formats": ["txt"],
                "granularity": "combined",
                "metadataFields": ["title", "readingTime"],
                "outputDir": "/tmp/out",
            }
        )

        assert config.mode == ExportMode.SPECIFIC_POSTS
        assert config.selected_post_ids == ["a", "b"]
        assert config.manual_order == ["b", "a"]
        assert config.sort_direction == SortDirection.ASC
        assert config.formats == [ExportFormat.TXT]
        assert config.granularity == Granularity.COMBINED
        assert config.metadata_fields == [
            MetadataField.TITLE,
            MetadataField.READING_TIME,
        ]
        assert config.output_directory == "/tmp/out"
        assert config.wants_epub is False

    def test_legacy_spellings(self) -> None:
        """ascending/descending, substack_author 표기 허용."""
        config = ExportConfiguration.model_validate(
            {
                "sortDirection": "ascending",
                "coverMode": "substack_author",
                "outputDirectory": "/tmp/out",
            }
        )

        assert config.sort_direction == SortDirection.ASC
        assert config.cover_mode == CoverMode.PUBLICATION_AUTHOR

    def test_invalid_format_rejected(self) -> None:
        """알 수 없는 포맷은 ValidationError."""
        with pytest.raises(ValidationError):
            ExportConfiguration.model_validate(
                {"formats": ["pdf"], "outputDirectory": "/tmp/out"}
            )

    def test_duplicate_formats_removed(self) -> None:
        """중복 포맷/필드는 순서를 유지하며 제거."""
        config = ExportConfiguration(
            output_directory="/tmp/out",
            formats=[ExportFormat.TXT, ExportFormat.EPUB, ExportFormat.TXT],
            metadata_fields=[MetadataField.URL, MetadataField.URL],
        )

        assert config.formats == [ExportFormat.TXT, ExportFormat.EPUB]
        assert config.metadata_fields == [MetadataField.URL]

    def test_custom_cover_data_url_decoded(self) -> None:
        """customCoverDataUrl은 이미지 바이트와 MIME 타입으로 디코딩."""
        payload = base64.b64encode(b"fake-image").decode()
        config = ExportConfiguration.model_validate(
            {
                "coverMode": "custom",
                "customCoverDataUrl": f"data:image/png;base64,{payload}",
                "outputDirectory": "/tmp/out",
            }
        )

        assert config.cover_mode == CoverMode.CUSTOM
        assert config.custom_cover_image == b"fake-image"
        assert config.custom_cover_media_type == "image/png"

    def test_custom_cover_invalid_data_url(self) -> None:
        """base64가 아닌 data URL은 ValidationError."""
        with pytest.raises(ValidationError):
            ExportConfiguration.model_validate(
                {
                    "customCoverDataUrl": "data:image/png,raw",
                    "outputDirectory": "/tmp/out",
                }
            )

    def test_custom_cover_image_excluded_from_dump(self) -> None:
        """커버 바이트는 직렬화에서 제외."""
        config = ExportConfiguration(
            output_directory="/tmp/out", custom_cover_image=b"bytes"
        )

        assert "custom_cover_image" not in config.model_dump()


class TestExportRequest:
    """Tests for ExportRequest."""

    def test_parse_camel_case_request(self) -> None:
        """중첩된 camelCase 요청 파싱."""
        request = ExportRequest.model_validate(
            {
                "publication": {
                    "url": "https://example.substack.com",
                    "title": "Example",
                    "authorCoverUrl": "https://cdn.example.com/a.png",
                },
                "posts": [
                    {
                        "id": "p1",
                        "title": "Hello",
                        "publishedAt": "2024-01-01",
                        "url": "https://example.substack.com/p/hello",
                    }
                ],
                "configuration": {"outputDirectory": "/tmp/out"},
            }
        )

        assert request.publication.author_cover_url == "https://cdn.example.com/a.png"
        assert request.posts[0].published_at == "2024-01-01"
        assert request.configuration.output_directory == "/tmp/out"


class TestExportOutcome:
    """Tests for ExportOutcome."""

    def test_defaults(self) -> None:
        """기본 상태는 completed이며 목록은 비어 있음."""
        outcome = ExportOutcome()

        assert outcome.status == ExportStatus.COMPLETED
        assert outcome.succeeded == []
        assert outcome.failed == []
        assert outcome.output_files == []
        assert outcome.warnings == []

    def test_failed_ids(self) -> None:
        """실패 ID 목록."""
        outcome = ExportOutcome(
            succeeded=["p1"],
            failed=[
                ExportFailure(post_id="p2", reason="HTTP 500"),
                ExportFailure(post_id="epub:combined", reason="disk full"),
            ],
        )

        assert outcome.failed_ids == ["p2", "epub:combined"]

    def test_dump_by_alias(self) -> None:
        """camelCase로 직렬화."""
        outcome = ExportOutcome(
            output_files=["/tmp/a.epub"],
            failed=[ExportFailure(post_id="p2", reason="HTTP 500")],
        )

        data = outcome.model_dump(mode="json", by_alias=True)

        assert data["status"] == "completed"
        assert data["outputFiles"] == ["/tmp/a.epub"]
        assert data["failed"] == [{"postId": "p2", "reason": "HTTP 500"}]
