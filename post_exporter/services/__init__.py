"""Export engine services."""

from post_exporter.services.assembler import Compilation, DocumentAssembler
from post_exporter.services.cover_resolver import CoverResolver
from post_exporter.services.epub_packager import EpubPackager
from post_exporter.services.export_orchestrator import (
    ExportOrchestrator,
    PostResult,
    validate_configuration,
)
from post_exporter.services.normalizer import ContentNormalizer
from post_exporter.services.text_packager import TextPackager

__all__ = [
    "Compilation",
    "ContentNormalizer",
    "CoverResolver",
    "DocumentAssembler",
    "EpubPackager",
    "ExportOrchestrator",
    "PostResult",
    "TextPackager",
    "validate_configuration",
]
