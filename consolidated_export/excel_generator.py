"""Excel workbook generation for the consolidated export."""

from datetime import datetime
from typing import Callable
from zipfile import ZIP_DEFLATED, ZipFile
import io
import logging

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.writer.excel import ExcelWriter

from .config_schema import ExportOptions
from .hierarchy import Snapshot, index_hierarchy
from .matrix import MatrixRow, populate_matrix
from .observations import ObservationIndex, bind_observation_links, build_observation_index
from .schema import HEADER_ROWS, NAME_COLUMN, NUMBER_COLUMN, ColumnSchema, build_column_schema
from .styles import (
    CellStyle,
    Role,
    apply_style,
    body_role,
    header_role,
    style_for,
    thin_border,
)

logger = logging.getLogger(__name__)

# Core properties are pinned so repeated exports of one snapshot match.
FIXED_TIMESTAMP = datetime(2000, 1, 1)

NUMBER_WIDTH = 4
NAME_WIDTH = 28
DATA_WIDTH = 12
HEADER_HEIGHTS = (22, 20, 30, 22)
OBSERVATION_WIDTHS = (28, 28, 70)
AVERAGE_FORMAT = "0.00"

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportError(Exception):
    """Raised when the workbook cannot be built or serialized."""


def col_letter(col: int) -> str:
    """Convert a 0-based column index to its Excel letter."""
    return get_column_letter(col + 1)


def create_consolidated_sheet(
    ws,
    schema: ColumnSchema,
    rows: list[MatrixRow],
    options: ExportOptions,
):
    """
    Write headers, student rows, merges, styles and sizes of the main sheet.

    Args:
        ws: Worksheet to populate
        schema: Column layout and header texts
        rows: Populated matrix rows in sheet order
        options: Export options (palette, labels)
    """
    border = thin_border(options.palette.border)

    # --- Header values, then merges, then styles ---
    for (row, col), text in schema.headers.items():
        ws.cell(row=row + 1, column=col + 1, value=text)

    for merge in schema.merges:
        ws.merge_cells(merge.coord)

    for row in range(HEADER_ROWS):
        for col in range(schema.width):
            style = style_for(header_role(schema, row, col), options.palette)
            apply_style(ws.cell(row=row + 1, column=col + 1), style, border)

    # --- Student rows ---
    body_styles = {
        role: style_for(role, options.palette)
        for role in (Role.BODY_NUMBER, Role.BODY_NAME, Role.BODY_DATA)
    }
    for matrix_row in rows:
        r = matrix_row.sheet_row + 1
        values = {NUMBER_COLUMN: matrix_row.number, NAME_COLUMN: matrix_row.student.full_name}
        values.update(matrix_row.cells)

        for col in range(schema.width):
            value = values.get(col, "")
            cell = ws.cell(row=r, column=col + 1, value=value)
            if isinstance(value, float):
                cell.number_format = AVERAGE_FORMAT
            apply_style(cell, body_styles[body_role(col)], border)

    # Adjust column widths and header heights
    for col in range(schema.width):
        if col == NUMBER_COLUMN:
            width = NUMBER_WIDTH
        elif col == NAME_COLUMN:
            width = NAME_WIDTH
        else:
            width = DATA_WIDTH
        ws.column_dimensions[col_letter(col)].width = width

    for row, height in enumerate(HEADER_HEIGHTS, 1):
        ws.row_dimensions[row].height = height


def create_observations_sheet(ws, index: ObservationIndex, options: ExportOptions):
    """Create the alphabetized Observations sheet."""
    border = thin_border(options.palette.border)
    header_style = CellStyle(fill=options.palette.fixed_columns, bold=True,
                             vertical="top", wrap=True)
    centered = CellStyle(vertical="top", wrap=True)
    left = CellStyle(horizontal="left", vertical="top", wrap=True)

    for col, title in enumerate(options.observations_header, 1):
        apply_style(ws.cell(row=1, column=col, value=title), header_style, border)

    for position, obs in enumerate(index.rows, 2):
        for col, value in enumerate((obs.student_name, obs.ability_name, obs.text), 1):
            style = left if col == 3 else centered
            apply_style(ws.cell(row=position, column=col, value=value), style, border)

    for col, width in enumerate(OBSERVATION_WIDTHS, 1):
        ws.column_dimensions[get_column_letter(col)].width = width


def generate_workbook(snapshot: Snapshot, options: ExportOptions | None = None) -> Workbook:
    """
    Generate the consolidated workbook for one section.

    Args:
        snapshot: Evaluation data of the section
        options: Export options; defaults apply when omitted

    Returns:
        openpyxl Workbook with the Consolidated sheet and, when enabled, the
        Observations sheet
    """
    options = options or ExportOptions()

    hierarchy = index_hierarchy(snapshot)
    schema = build_column_schema(hierarchy, options.header_labels())
    index = build_observation_index(snapshot)
    rows = populate_matrix(snapshot, schema, index, options)

    wb = Workbook()
    ws = wb.active
    ws.title = options.consolidated_title
    create_consolidated_sheet(ws, schema, rows, options)

    observations_title = None
    if options.observations_sheet:
        ws_obs = wb.create_sheet(title=options.observations_title)
        create_observations_sheet(ws_obs, index, options)
        observations_title = ws_obs.title

    bind_observation_links(ws, schema, rows, index, observations_title)

    wb.properties.created = FIXED_TIMESTAMP
    wb.properties.modified = FIXED_TIMESTAMP

    logger.debug(
        "Built workbook: %d students, %d columns, %d observations",
        len(rows), schema.width, len(index),
    )
    return wb


def workbook_to_bytes(wb: Workbook) -> bytes:
    """Serialize a workbook to xlsx bytes, keeping its core timestamps."""
    buffer = io.BytesIO()
    archive = ZipFile(buffer, "w", ZIP_DEFLATED, allowZip64=True)
    ExcelWriter(wb, archive).save()
    return buffer.getvalue()


def export_consolidated(
    snapshot: Snapshot,
    options: ExportOptions | None = None,
    deliver: Callable[[bytes, str], None] | None = None,
) -> bytes:
    """
    Build the consolidated workbook and hand its bytes to ``deliver``.

    Args:
        snapshot: Evaluation data of the section
        options: Export options; defaults apply when omitted
        deliver: Optional callback receiving ``(data, file_name)``, e.g. a
            file write or a download response

    Returns:
        The xlsx file content

    Raises:
        ExportError: If building or serializing the workbook fails. Nothing
            is delivered in that case.
    """
    options = options or ExportOptions()
    try:
        data = workbook_to_bytes(generate_workbook(snapshot, options))
    except Exception as exc:
        raise ExportError(f"Could not generate {options.file_name}: {exc}") from exc

    if deliver is not None:
        deliver(data, options.file_name)
    return data
