"""Export API endpoints.

데스크톱 UI가 내보내기 잡을 실행하는 API입니다.
"""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request

from post_exporter.adapters.content_fetcher import ContentFetcher, HttpContentFetcher
from post_exporter.exceptions import ConfigurationError
from post_exporter.models.export import ExportRequest
from post_exporter.services.export_orchestrator import ExportOrchestrator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/exports", tags=["exports"])


def get_orchestrator(fetcher: ContentFetcher) -> ExportOrchestrator:
    """ExportOrchestrator 인스턴스 생성."""
    return ExportOrchestrator(fetcher)


@router.post("")
async def create_export(
    request: Request,
    body: ExportRequest,
) -> dict[str, Any]:
    """내보내기 잡 실행.

    Args:
        request: FastAPI 요청 객체
        body: 퍼블리케이션, 포스트 목록, 내보내기 옵션

    Returns:
        ExportOutcome (camelCase)
    """
    fetcher = getattr(request.app.state, "fetcher", None)
    if fetcher is None:
        async with HttpContentFetcher() as own_fetcher:
            return await _run_export(get_orchestrator(own_fetcher), body)
    return await _run_export(get_orchestrator(fetcher), body)


async def _run_export(
    orchestrator: ExportOrchestrator, body: ExportRequest
) -> dict[str, Any]:
    try:
        outcome = await orchestrator.run(body)
    except ConfigurationError as e:
        logger.warning("export_rejected", problems=e.problems)
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_configuration", "problems": e.problems},
        ) from e

    logger.info(
        "export_finished",
        status=outcome.status.value,
        succeeded=len(outcome.succeeded),
        failed=len(outcome.failed),
    )
    return outcome.model_dump(mode="json", by_alias=True)
