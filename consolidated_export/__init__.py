"""Consolidated grade export: one section's evaluations as an Excel workbook."""

from .config_schema import DEFAULT_CONFIG, ExportOptions, get_default_config, merge_config
from .validators import validate_config, validate_snapshot
from .hierarchy import Snapshot, SnapshotError, index_hierarchy
from .schema import build_column_schema
from .observations import build_observation_index
from .matrix import matrix_to_frame, populate_matrix
from .excel_generator import (
    XLSX_MIME,
    ExportError,
    export_consolidated,
    generate_workbook,
    workbook_to_bytes,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ExportOptions",
    "get_default_config",
    "merge_config",
    "validate_config",
    "validate_snapshot",
    "Snapshot",
    "SnapshotError",
    "index_hierarchy",
    "build_column_schema",
    "build_observation_index",
    "matrix_to_frame",
    "populate_matrix",
    "XLSX_MIME",
    "ExportError",
    "export_consolidated",
    "generate_workbook",
    "workbook_to_bytes",
]
