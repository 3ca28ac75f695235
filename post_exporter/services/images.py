"""Image type detection and inline image download."""

from __future__ import annotations

import asyncio
import hashlib
import io

import structlog
from PIL import Image, UnidentifiedImageError

from post_exporter.adapters.content_fetcher import ContentFetcher
from post_exporter.exceptions import ContentFetchError
from post_exporter.models.document import ImageAsset, NormalizedDocument

logger = structlog.get_logger(__name__)

# Pillow format → (MIME 타입, 확장자)
IMAGE_FORMATS: dict[str, tuple[str, str]] = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "GIF": ("image/gif", "gif"),
    "WEBP": ("image/webp", "webp"),
}

MEDIA_TYPE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def detect_image_type(content: bytes) -> tuple[str, str] | None:
    """이미지 바이트에서 (MIME 타입, 확장자) 판별.

    EPUB에서 지원하지 않는 포맷이거나 판별할 수 없으면 None.
    """
    if not content:
        return None
    try:
        with Image.open(io.BytesIO(content)) as image:
            image_format = image.format
    except (UnidentifiedImageError, OSError):
        return None
    if image_format is None:
        return None
    return IMAGE_FORMATS.get(image_format.upper())


def extension_for_media_type(media_type: str | None) -> str | None:
    """MIME 타입 → 확장자."""
    if not media_type:
        return None
    return MEDIA_TYPE_EXTENSIONS.get(media_type.lower())


async def download_images(
    document: NormalizedDocument,
    fetcher: ContentFetcher,
    timeout_seconds: float,
) -> list[str]:
    """문서의 본문 이미지를 다운로드하여 document.images에 채움.

    이미지 실패는 포스트 실패가 아니며 경고로만 반환됩니다.

    Returns:
        경고 메시지 목록
    """
    warnings: list[str] = []
    for src in document.image_sources():
        if not src.startswith(("http://", "https://")):
            continue
        try:
            content = await asyncio.wait_for(fetcher.fetch_bytes(src), timeout_seconds)
        except (ContentFetchError, TimeoutError) as e:
            reason = str(e) or "timed out"
            logger.warning("image_download_failed", post_id=document.post_id, src=src, error=reason)
            warnings.append(f"Image skipped in post {document.post_id}: {src} ({reason})")
            continue

        detected = detect_image_type(content)
        if detected is None:
            warnings.append(
                f"Image skipped in post {document.post_id}: {src} (unsupported format)"
            )
            continue

        media_type, extension = detected
        # 같은 URL은 같은 파일명 (합본 EPUB에서 중복 등록 방지)
        digest = hashlib.sha256(src.encode()).hexdigest()[:16]
        document.images[src] = ImageAsset(
            file_name=f"images/img-{digest}.{extension}",
            media_type=media_type,
            content=content,
        )
    return warnings
