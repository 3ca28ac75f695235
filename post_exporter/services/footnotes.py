"""Footnote extraction for post bodies.

Substack 각주 (div.footnote) 와 일반적인 각주 목록 (.footnotes li[id])을
본문에서 분리하고, 본문 안의 참조 링크를 `[n]` 마커로 바꿉니다.
"""

from __future__ import annotations

from dataclasses import dataclass

from bs4 import NavigableString, Tag

from post_exporter.models.document import Footnote

_LIST_FOOTNOTE_SELECTOR = (
    "section.footnotes li[id], div.footnotes li[id], ol.footnotes > li[id]"
)
_LIST_CONTAINER_SELECTOR = "section.footnotes, div.footnotes, ol.footnotes"
_BACKLINK_TEXTS = {"↩", "↩︎", "[back]", "^", "back"}


@dataclass
class _Candidate:
    element: Tag
    ids: set[str]
    text: str


def extract_footnotes(container: Tag) -> list[Footnote]:
    """본문 컨테이너에서 각주 추출 (컨테이너를 직접 수정).

    Args:
        container: 본문 루트 요소

    Returns:
        1부터 번호가 매겨진 각주 목록
    """
    candidates = _substack_candidates(container)
    if not candidates:
        candidates = _list_candidates(container)

    footnotes: list[Footnote] = []
    id_to_number: dict[str, int] = {}
    for candidate in candidates:
        number = len(footnotes) + 1
        footnotes.append(Footnote(number=number, text=candidate.text))
        for footnote_id in candidate.ids:
            id_to_number[footnote_id] = number
        candidate.element.decompose()

    for leftover in container.select(_LIST_CONTAINER_SELECTOR):
        leftover.decompose()

    if id_to_number:
        _replace_references(container, id_to_number)

    return footnotes


def _substack_candidates(container: Tag) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    for element in container.select("div.footnote"):
        ids = _collect_ids(element)

        content = element.select_one(".footnote-content")
        if content is not None:
            text = _clean_text(content.get_text(" "))
        else:
            for number_anchor in element.select("a.footnote-number"):
                number_anchor.extract()
            text = _clean_text(element.get_text(" "))

        if _is_meaningful(text):
            candidates.append(_Candidate(element=element, ids=ids, text=text))
        else:
            element.decompose()
    return candidates


def _list_candidates(container: Tag) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    for element in container.select(_LIST_FOOTNOTE_SELECTOR):
        ids = _collect_ids(element)
        for anchor in element.find_all("a"):
            classes = " ".join(anchor.get("class", []))
            if "back" in classes or anchor.get_text(strip=True) in _BACKLINK_TEXTS:
                anchor.decompose()
        text = _clean_text(element.get_text(" "))
        if _is_meaningful(text):
            candidates.append(_Candidate(element=element, ids=ids, text=text))
    return candidates


def _collect_ids(element: Tag) -> set[str]:
    ids: set[str] = set()
    own_id = element.get("id")
    if isinstance(own_id, str) and own_id.strip():
        ids.add(own_id.strip())
    for node in element.select("[id]"):
        node_id = node.get("id")
        if isinstance(node_id, str) and node_id.strip():
            ids.add(node_id.strip())
    return ids


def _replace_references(container: Tag, id_to_number: dict[str, int]) -> None:
    for anchor in container.find_all("a", href=True):
        target = _fragment_id(anchor["href"])
        if target is None or target not in id_to_number:
            continue
        anchor.replace_with(NavigableString(f"[{id_to_number[target]}]"))


def _fragment_id(href: str) -> str | None:
    """href의 fragment (#...) 부분."""
    _, sep, fragment = href.partition("#")
    if not sep or not fragment.strip():
        return None
    return fragment.strip()


def _clean_text(value: str) -> str:
    return " ".join(value.split())


def _is_meaningful(text: str) -> bool:
    stripped = text.strip("[]() .")
    return bool(stripped) and not stripped.isdigit()
