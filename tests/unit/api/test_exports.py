"""Tests for export API endpoints."""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from post_exporter.exceptions import ConfigurationError
from post_exporter.models.export import ExportFailure, ExportOutcome, ExportStatus
from tests.utils import FakeFetcher, make_post_html

POST_URL = "https://example.substack.com/p/hello"


def _payload(output_directory: str, **configuration: Any) -> dict[str, Any]:
    return {
        "publication": {
            "url": "https://example.substack.com",
            "title": "Example Letters",
            "author": "Jane Writer",
        },
        "posts": [
            {
                "id": "p1",
                "title": "Hello",
                "publishedAt": "2024-01-01T00:00:00Z",
                "url": POST_URL,
            }
        ],
        "configuration": {"outputDirectory": output_directory, **configuration},
    }


class TestExportsEndpoint:
    """Tests for POST /exports."""

    @pytest.fixture
    def fetcher(self) -> FakeFetcher:
        """테스트용 fetcher."""
        return FakeFetcher(pages={POST_URL: make_post_html("Hello")})

    @pytest.fixture
    def app(self, fetcher: FakeFetcher) -> FastAPI:
        """테스트용 FastAPI 앱."""
        from post_exporter.api.exports import router

        app = FastAPI()
        app.include_router(router)
        app.state.fetcher = fetcher
        return app

    @pytest.fixture
    def client(self, app: FastAPI) -> TestClient:
        """테스트 클라이언트."""
        return TestClient(app)

    def test_create_export_returns_outcome(
        self, client: TestClient, tmp_path: Path
    ) -> None:
        """POST /exports 결과를 camelCase로 반환."""
        outcome = ExportOutcome(
            succeeded=["p1"],
            failed=[ExportFailure(post_id="p2", reason="HTTP 404")],
            output_files=[str(tmp_path / "Example Letters - Hello.epub")],
        )
        with patch("post_exporter.api.exports.get_orchestrator") as mock_get:
            mock_orchestrator = MagicMock()
            mock_orchestrator.run = AsyncMock(return_value=outcome)
            mock_get.return_value = mock_orchestrator

            response = client.post("/exports", json=_payload(str(tmp_path)))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["succeeded"] == ["p1"]
        assert data["failed"] == [{"postId": "p2", "reason": "HTTP 404"}]
        assert data["outputFiles"] == [str(tmp_path / "Example Letters - Hello.epub")]
        assert data["warnings"] == []

    def test_create_export_passes_request(
        self, client: TestClient, tmp_path: Path
    ) -> None:
        """요청 본문을 ExportRequest로 변환하여 전달."""
        with patch("post_exporter.api.exports.get_orchestrator") as mock_get:
            mock_orchestrator = MagicMock()
            mock_orchestrator.run = AsyncMock(return_value=ExportOutcome())
            mock_get.return_value = mock_orchestrator

            client.post(
                "/exports",
                json=_payload(
                    str(tmp_path),
                    formats=["txt"],
                    granularity="combined",
                    sortDirection="ascending",
                ),
            )

        request = mock_orchestrator.run.call_args.args[0]
        assert request.publication.title == "Example Letters"
        assert request.posts[0].published_at == "2024-01-01T00:00:00Z"
        assert request.configuration.formats[0].value == "txt"
        assert request.configuration.granularity.value == "combined"
        assert request.configuration.sort_direction.value == "asc"

    def test_create_export_configuration_error(
        self, client: TestClient, tmp_path: Path
    ) -> None:
        """설정 오류는 400과 문제 목록 반환."""
        problems = [
            "At least one output format must be selected.",
            "No posts selected for export.",
        ]
        with patch("post_exporter.api.exports.get_orchestrator") as mock_get:
            mock_orchestrator = MagicMock()
            mock_orchestrator.run = AsyncMock(side_effect=ConfigurationError(problems))
            mock_get.return_value = mock_orchestrator

            response = client.post("/exports", json=_payload(str(tmp_path)))

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "invalid_configuration"
        assert detail["problems"] == problems

    def test_create_export_invalid_body(self, client: TestClient) -> None:
        """필수 필드 누락은 422."""
        response = client.post("/exports", json={"posts": []})

        assert response.status_code == 422

    def test_create_export_invalid_cover_data_url(
        self, client: TestClient, tmp_path: Path
    ) -> None:
        """잘못된 커버 data URL은 422."""
        response = client.post(
            "/exports",
            json=_payload(
                str(tmp_path),
                coverMode="custom",
                customCoverDataUrl="not-a-data-url",
            ),
        )

        assert response.status_code == 422

    def test_create_export_end_to_end(
        self, client: TestClient, fetcher: FakeFetcher, tmp_path: Path
    ) -> None:
        """실제 오케스트레이터로 TXT 파일 생성."""
        response = client.post(
            "/exports", json=_payload(str(tmp_path), formats=["txt"])
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == ExportStatus.COMPLETED.value
        assert data["succeeded"] == ["p1"]
        assert fetcher.fetched == [POST_URL]
        output = Path(data["outputFiles"][0])
        assert output.name == "Example Letters - Hello.txt"
        assert "Body of Hello." in output.read_text(encoding="utf-8")

    def test_create_export_missing_output_directory(
        self, client: TestClient, tmp_path: Path
    ) -> None:
        """존재하지 않는 출력 디렉토리는 400."""
        response = client.post(
            "/exports", json=_payload(str(tmp_path / "missing"), formats=["txt"])
        )

        assert response.status_code == 400
        problems = response.json()["detail"]["problems"]
        assert len(problems) == 1
        assert "does not exist" in problems[0]
