"""Output file naming."""

import re

MAX_FILENAME_LENGTH = 120

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9\-_ ]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(value: str | None) -> str:
    """파일명으로 안전한 문자열 생성.

    ASCII 영숫자, `-`, `_`, 공백만 남기고 나머지는 `_`로 바꿉니다.

    Examples:
        >>> sanitize_filename("What's next? Part 1/2")
        'What_s next_ Part 1_2'
    """
    text = _UNSAFE_CHARS.sub("_", value or "")
    text = _WHITESPACE.sub(" ", text).strip()
    if not text:
        return "untitled"
    return text[:MAX_FILENAME_LENGTH].rstrip()


class FileNameAllocator:
    """잡 단위로 충돌 없는 출력 파일명 할당.

    같은 이름이 다시 요청되면 ` (2)`, ` (3)` ... 을 붙입니다.
    """

    def __init__(self) -> None:
        self._used: set[str] = set()

    def allocate(self, publication_title: str, label: str, extension: str) -> str:
        """`<publication> - <label>.<ext>` 형태의 파일명 할당."""
        stem = f"{sanitize_filename(publication_title)} - {sanitize_filename(label)}"
        candidate = f"{stem}.{extension}"
        ordinal = 2
        while candidate.lower() in self._used:
            candidate = f"{stem} ({ordinal}).{extension}"
            ordinal += 1
        self._used.add(candidate.lower())
        return candidate
