"""Exporter settings using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Exporter configuration from environment variables.

    모든 값은 기본값을 가지며 환경변수 또는 .env 파일로 덮어쓸 수 있습니다.
    사용자에게 노출되는 옵션이 아닌 엔진 내부 튜닝 값입니다.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------
    EXPORT_MAX_CONCURRENT_FETCHES: int = Field(4, ge=1, le=32)
    """동시에 수행할 포스트 fetch 수 (upstream 보호용 상한)"""

    EXPORT_FETCH_TIMEOUT_SECONDS: float = Field(30.0, gt=0)
    """포스트/이미지 fetch 1건당 타임아웃 (초)"""

    EXPORT_USER_AGENT: str = "post-exporter/0.1 (+desktop)"

    EXPORT_EMBED_IMAGES: bool = True
    """EPUB 출력 시 본문 이미지를 다운로드하여 포함할지 여부"""

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------
    EXPORT_WORDS_PER_MINUTE: int = Field(238, ge=1)
    """읽기 시간 추정에 사용할 분당 단어 수"""

    EXPORT_LANGUAGE: str = "en"
    """EPUB 패키지 언어 코드"""

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"


# Singleton instance (lazy initialization)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the exporter settings (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
