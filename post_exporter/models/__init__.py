"""Domain models for the post exporter.

This module exports the request/response models and the document model
shared by the export services.
"""

from post_exporter.models.cover import CoverAsset, TitlePage, decode_data_url
from post_exporter.models.document import (
    Block,
    BlockKind,
    Footnote,
    ImageAsset,
    NormalizedDocument,
    parse_published_at,
    sort_timestamp,
)
from post_exporter.models.export import (
    CoverMode,
    ExportConfiguration,
    ExportFailure,
    ExportFormat,
    ExportMode,
    ExportOutcome,
    ExportRequest,
    ExportStatus,
    Granularity,
    MetadataField,
    OrderMode,
    SortDirection,
)
from post_exporter.models.publication import PostRef, PublicationRef

__all__ = [
    "Block",
    "BlockKind",
    "CoverAsset",
    "CoverMode",
    "ExportConfiguration",
    "ExportFailure",
    "ExportFormat",
    "ExportMode",
    "ExportOutcome",
    "ExportRequest",
    "ExportStatus",
    "Footnote",
    "Granularity",
    "ImageAsset",
    "MetadataField",
    "NormalizedDocument",
    "OrderMode",
    "PostRef",
    "PublicationRef",
    "SortDirection",
    "TitlePage",
    "decode_data_url",
    "parse_published_at",
    "sort_timestamp",
]
