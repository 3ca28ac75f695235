"""Exception hierarchy for the export engine.

배치 전체를 중단시키는 예외는 ConfigurationError 하나뿐이며,
나머지는 포스트/파일 단위로 결과에 기록됩니다.
"""


class ExportError(Exception):
    """내보내기 엔진 기본 예외."""

    def __init__(self, message: str, post_id: str | None = None) -> None:
        self.post_id = post_id
        super().__init__(message)


class ConfigurationError(ExportError):
    """잡 시작 전 검증 실패 (fatal, pre-flight)."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("; ".join(problems))


class ContentFetchError(ExportError):
    """포스트 원문을 가져오지 못함 (네트워크, 타임아웃, 삭제된 포스트)."""

    def __init__(
        self, message: str, url: str | None = None, post_id: str | None = None
    ) -> None:
        self.url = url
        super().__init__(message, post_id=post_id)


class ContentParseError(ExportError):
    """가져온 원문을 블록 요소로 분해할 수 없음."""

    pass


class CoverError(ExportError):
    """커버 이미지 준비 실패 (경고로 처리)."""

    pass


class PackagingError(ExportError):
    """출력 파일 생성/쓰기 실패."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{message} (path={path})" if path else message)
