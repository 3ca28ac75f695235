"""Atomic output file writes and job cleanup."""

import os
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path

import structlog

from post_exporter.exceptions import PackagingError

logger = structlog.get_logger(__name__)


def atomic_write(path: Path, write: Callable[[Path], None]) -> Path:
    """임시 파일에 쓴 뒤 최종 경로로 교체.

    실패 시 최종 경로에는 아무것도 남지 않습니다 (기존 파일은 유지).

    Args:
        path: 최종 출력 경로
        write: 임시 파일 경로를 받아 내용을 쓰는 함수

    Raises:
        PackagingError: 쓰기 또는 교체 실패 시
    """
    try:
        fd, temp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem[:40]}-", suffix=".part"
        )
    except OSError as e:
        raise PackagingError(f"Cannot create temporary file: {e}", path=str(path)) from e
    os.close(fd)
    temp_path = Path(temp_name)
    try:
        write(temp_path)
        os.replace(temp_path, path)
    except PackagingError:
        temp_path.unlink(missing_ok=True)
        raise
    except Exception as e:
        temp_path.unlink(missing_ok=True)
        logger.error("output_write_failed", path=str(path), error=str(e))
        raise PackagingError(f"Failed to write output file: {e}", path=str(path)) from e
    return path


def remove_files(paths: Iterable[Path]) -> None:
    """잡이 쓴 파일 삭제 (취소 시 정리용)."""
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("output_cleanup_failed", path=str(path), error=str(e))
        else:
            logger.debug("output_removed", path=str(path))
