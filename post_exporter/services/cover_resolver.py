"""Cover resolver.

잡 단위로 정확히 한 번 실행되며, 결과는 모든 출력 파일이 읽기 전용으로 공유합니다.
"""

from __future__ import annotations

import asyncio

import structlog

from post_exporter.adapters.content_fetcher import ContentFetcher
from post_exporter.config.settings import get_settings
from post_exporter.exceptions import ConfigurationError, ContentFetchError, CoverError
from post_exporter.models.cover import CoverAsset, TitlePage
from post_exporter.models.export import CoverMode
from post_exporter.models.publication import PublicationRef
from post_exporter.services.images import detect_image_type, extension_for_media_type

logger = structlog.get_logger(__name__)

DEFAULT_COVER_MEDIA_TYPE = "image/jpeg"


class CoverResolver:
    """커버 이미지와 타이틀 페이지 텍스트 결정."""

    def __init__(
        self,
        fetcher: ContentFetcher | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """CoverResolver 초기화.

        Args:
            fetcher: 작성자 커버 이미지를 가져올 collaborator
            timeout_seconds: 이미지 fetch 타임아웃 (기본: EXPORT_FETCH_TIMEOUT_SECONDS)
        """
        self.fetcher = fetcher
        self.timeout_seconds = (
            timeout_seconds or get_settings().EXPORT_FETCH_TIMEOUT_SECONDS
        )

    async def resolve(
        self,
        cover_mode: CoverMode,
        custom_cover_image: bytes | None,
        publication: PublicationRef,
        custom_media_type: str | None = None,
        include_image: bool = True,
    ) -> CoverAsset:
        """커버 결정.

        Args:
            cover_mode: 커버 출처
            custom_cover_image: 호출자가 제공한 이미지 바이트 (custom 모드)
            publication: 퍼블리케이션 (작성자 커버 URL, 타이틀 페이지 텍스트)
            custom_media_type: 호출자가 알려준 MIME 타입 힌트
            include_image: 이미지가 필요한 출력(EPUB)이 있는지 여부

        Returns:
            CoverAsset (이미지가 없을 수 있음)

        Raises:
            ConfigurationError: custom 모드에서 이미지가 필요한데 제공되지 않은 경우
            CoverError: 작성자 커버를 가져오지 못한 경우
        """
        title_page = TitlePage(title=publication.title, author=publication.author)

        if not include_image:
            return CoverAsset(title_page=title_page)

        if cover_mode == CoverMode.CUSTOM:
            if not custom_cover_image:
                raise ConfigurationError(
                    ["Custom cover mode selected but no cover image was supplied."]
                )
            media_type, extension = _describe(custom_cover_image, custom_media_type)
            logger.info("cover_resolved", mode=cover_mode.value, media_type=media_type)
            return CoverAsset(
                title_page=title_page,
                image=custom_cover_image,
                media_type=media_type,
                extension=extension,
            )

        cover_url = publication.author_cover_url
        if not cover_url or not cover_url.strip():
            logger.info("cover_absent", mode=cover_mode.value)
            return CoverAsset(title_page=title_page)

        if self.fetcher is None:
            raise CoverError("No content fetcher available for the author cover image")

        try:
            content = await asyncio.wait_for(
                self.fetcher.fetch_bytes(cover_url), self.timeout_seconds
            )
        except TimeoutError as e:
            raise CoverError(f"Author cover image timed out: {cover_url}") from e
        except ContentFetchError as e:
            raise CoverError(f"Could not fetch author cover image: {e}") from e

        if not content:
            raise CoverError("Cover image bytes are empty.")

        media_type, extension = _describe(content, None)
        logger.info("cover_resolved", mode=cover_mode.value, media_type=media_type)
        return CoverAsset(
            title_page=title_page,
            image=content,
            media_type=media_type,
            extension=extension,
        )


def _describe(content: bytes, media_type_hint: str | None) -> tuple[str, str]:
    """이미지 바이트의 (MIME 타입, 확장자). 판별 불가 시 힌트 → image/jpeg."""
    detected = detect_image_type(content)
    if detected is not None:
        return detected
    media_type = media_type_hint or DEFAULT_COVER_MEDIA_TYPE
    extension = extension_for_media_type(media_type) or "img"
    return media_type, extension
