"""Content-fetch collaborator.

엔진은 ContentFetcher 프로토콜에만 의존하며, 재시도는 하지 않습니다.
HttpContentFetcher는 httpx 기반 기본 구현입니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Protocol

import httpx
import structlog

from post_exporter.config.settings import get_settings
from post_exporter.exceptions import ContentFetchError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RawContent:
    """가져온 원문 (HTML 또는 구조화된 JSON payload)."""

    url: str
    body: str
    content_type: str = "text/html"

    @property
    def is_json(self) -> bool:
        """JSON payload 여부."""
        return "json" in self.content_type.lower()


class ContentFetcher(Protocol):
    """Content-fetch collaborator interface."""

    async def fetch(self, url: str) -> RawContent: ...

    async def fetch_bytes(self, url: str) -> bytes: ...


class HttpContentFetcher:
    """httpx 기반 ContentFetcher 구현.

    Usage:
        async with HttpContentFetcher() as fetcher:
            raw = await fetcher.fetch(post.url)
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float | None = None,
        user_agent: str | None = None,
    ) -> None:
        """HttpContentFetcher 초기화.

        Args:
            client: 외부에서 주입할 httpx 클라이언트 (테스트용)
            timeout_seconds: 요청 타임아웃 (기본: EXPORT_FETCH_TIMEOUT_SECONDS)
            user_agent: User-Agent 헤더 (기본: EXPORT_USER_AGENT)
        """
        settings = get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds or settings.EXPORT_FETCH_TIMEOUT_SECONDS,
            headers={"User-Agent": user_agent or settings.EXPORT_USER_AGENT},
            follow_redirects=True,
        )

    async def __aenter__(self) -> HttpContentFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """소유한 클라이언트 종료."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str) -> RawContent:
        """포스트 원문 fetch.

        Raises:
            ContentFetchError: HTTP 오류, 타임아웃, 네트워크 오류 시
        """
        response = await self._get(url)
        content_type = response.headers.get("content-type", "text/html")
        return RawContent(url=str(response.url), body=response.text, content_type=content_type)

    async def fetch_bytes(self, url: str) -> bytes:
        """바이너리 (이미지) fetch.

        Raises:
            ContentFetchError: HTTP 오류, 타임아웃, 네트워크 오류 또는 빈 응답 시
        """
        response = await self._get(url)
        if not response.content:
            raise ContentFetchError("Empty response body", url=url)
        return response.content

    async def _get(self, url: str) -> httpx.Response:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("http_error", url=url, status=status)
            reason = "Post not found or removed" if status in (404, 410) else f"HTTP {status}"
            raise ContentFetchError(reason, url=url) from e
        except httpx.TimeoutException as e:
            logger.warning("fetch_timeout", url=url)
            raise ContentFetchError("Request timed out", url=url) from e
        except httpx.HTTPError as e:
            logger.warning("fetch_failed", url=url, error=str(e))
            raise ContentFetchError(f"Network error: {e}", url=url) from e
        return response
