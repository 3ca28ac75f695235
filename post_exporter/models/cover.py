"""Cover asset shared read-only by every output file of a job."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass


@dataclass(frozen=True)
class TitlePage:
    """생성된 타이틀 페이지 텍스트."""

    title: str
    author: str | None = None

    def lines(self) -> list[str]:
        """타이틀 페이지 텍스트 줄."""
        lines = [self.title]
        if self.author:
            lines.append(f"by {self.author}")
        return lines


@dataclass(frozen=True)
class CoverAsset:
    """잡 단위로 한 번만 결정되는 커버 정보."""

    title_page: TitlePage
    image: bytes | None = None
    media_type: str | None = None
    extension: str | None = None

    @property
    def has_image(self) -> bool:
        """커버 이미지 포함 여부."""
        return bool(self.image)

    @property
    def file_name(self) -> str | None:
        """패키지 내부 커버 이미지 파일명."""
        if not self.has_image:
            return None
        return f"images/cover.{self.extension or 'jpg'}"


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """`data:<mime>;base64,<payload>` 형식의 data URL 디코딩.

    Returns:
        (이미지 바이트, MIME 타입)

    Raises:
        ValueError: base64 data URL이 아니거나 디코딩 실패 시
    """
    meta, sep, body = data_url.partition(",")
    if not sep:
        raise ValueError("Invalid data URL format.")
    if not meta.endswith(";base64"):
        raise ValueError("Only base64 data URLs are supported.")

    mime_type = meta.removeprefix("data:").removesuffix(";base64")
    try:
        content = base64.b64decode(body.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Failed to decode base64 cover image.") from e
    return content, mime_type or "application/octet-stream"
