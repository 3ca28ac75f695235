"""Plain-text packager."""

from __future__ import annotations

from pathlib import Path

import structlog

from post_exporter.exceptions import PackagingError
from post_exporter.models.document import Block, BlockKind
from post_exporter.services.assembler import Compilation, CompilationEntry
from post_exporter.services.output_files import atomic_write

logger = structlog.get_logger(__name__)

SEPARATOR = "=" * 60


class TextPackager:
    """Compilation → UTF-8 텍스트 파일 (바이너리 자산 없음)."""

    def package(self, compilation: Compilation, path: Path) -> Path:
        """텍스트 파일 생성 (원자적 쓰기).

        Raises:
            PackagingError: 빈 Compilation이거나 쓰기 실패 시
        """
        if compilation.is_empty:
            raise PackagingError("Compilation has no documents", path=str(path))

        text = render_compilation(compilation)
        atomic_write(path, lambda temp_path: temp_path.write_text(text, encoding="utf-8"))
        logger.info(
            "text_written",
            path=str(path),
            key=compilation.key,
            documents=len(compilation.entries),
        )
        return path


def render_compilation(compilation: Compilation) -> str:
    """Compilation 전체 텍스트."""
    sections: list[str] = []
    if compilation.title_page is not None:
        sections.append("\n".join(compilation.title_page.lines()))
    sections.extend(render_entry(entry) for entry in compilation.entries)
    return f"\n\n{SEPARATOR}\n\n".join(sections) + "\n"


def render_entry(entry: CompilationEntry) -> str:
    """문서 하나: 메타데이터 헤더 → 본문 → 각주."""
    parts: list[str] = []
    if entry.metadata:
        parts.append("\n".join(f"{label}: {value}" for label, value in entry.metadata))

    parts.extend(_render_block(block) for block in entry.document.blocks)

    if entry.document.footnotes:
        lines = ["Footnotes"]
        lines.extend(
            f"[{footnote.number}] {footnote.text}"
            for footnote in entry.document.footnotes
        )
        parts.append("\n".join(lines))

    return "\n\n".join(part for part in parts if part)


def _render_block(block: Block) -> str:
    if block.kind == BlockKind.LIST:
        if block.ordered:
            return "\n".join(
                f"{number}. {item}" for number, item in enumerate(block.items, start=1)
            )
        return "\n".join(f"- {item}" for item in block.items)
    if block.kind == BlockKind.BLOCKQUOTE:
        return "\n".join(f"> {line}" for line in block.text.splitlines() or [""])
    if block.kind == BlockKind.IMAGE:
        return f"[Image: {block.caption or block.src or 'image'}]"
    return block.text
