"""Cell roles and their look.

Styles are computed from a cell's position and role only, never from its
value, and are applied after the whole layout exists.
"""

from dataclasses import dataclass
from enum import Enum

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from .config_schema import Palette
from .schema import (
    ABILITY_ROW,
    COMPETENCY_ROW,
    NAME_COLUMN,
    NUMBER_COLUMN,
    SESSION_ROW,
    ColumnKind,
    ColumnSchema,
)

WHITE = "FFFFFFFF"


class Role(Enum):
    FIXED = "fixed"
    SESSION = "session"
    COMPETENCY = "competency"
    ABILITY = "ability"
    ABILITY_AVERAGE = "ability_average"
    COMPETENCY_AVERAGE = "competency_average"
    CRITERION = "criterion"
    OBSERVATION = "observation"
    BODY_NUMBER = "body_number"
    BODY_NAME = "body_name"
    BODY_DATA = "body_data"


@dataclass(frozen=True)
class CellStyle:
    fill: str | None = None
    bold: bool = False
    horizontal: str = "center"
    vertical: str = "center"
    rotation: int = 0
    wrap: bool = False


def header_role(schema: ColumnSchema, row: int, col: int) -> Role:
    """Role of a header cell at 0-based ``(row, col)``."""
    if col in (NUMBER_COLUMN, NAME_COLUMN):
        return Role.FIXED
    if row == SESSION_ROW:
        return Role.SESSION
    if row == COMPETENCY_ROW:
        return Role.COMPETENCY

    kind = schema.column(col).kind
    if kind is ColumnKind.ABILITY_AVERAGE:
        return Role.ABILITY_AVERAGE
    if kind is ColumnKind.COMPETENCY_AVERAGE:
        return Role.COMPETENCY_AVERAGE
    # Row 2 above an observation column is blank but shares the ability fill.
    if row == ABILITY_ROW:
        return Role.ABILITY
    if kind is ColumnKind.OBSERVATION:
        return Role.OBSERVATION
    return Role.CRITERION


def body_role(col: int) -> Role:
    if col == NUMBER_COLUMN:
        return Role.BODY_NUMBER
    if col == NAME_COLUMN:
        return Role.BODY_NAME
    return Role.BODY_DATA


def style_for(role: Role, palette: Palette) -> CellStyle:
    """Style descriptor for a role under the given palette."""
    if role is Role.FIXED:
        return CellStyle(fill=palette.fixed_columns, bold=True)
    if role is Role.SESSION:
        return CellStyle(fill=palette.session, bold=True)
    if role is Role.COMPETENCY:
        return CellStyle(fill=palette.competency, bold=True)
    if role is Role.ABILITY:
        return CellStyle(fill=palette.ability, bold=True)
    if role is Role.ABILITY_AVERAGE:
        return CellStyle(fill=palette.ability_average, bold=True, rotation=90)
    if role is Role.COMPETENCY_AVERAGE:
        return CellStyle(fill=palette.ability, bold=True, rotation=90)
    if role is Role.CRITERION:
        return CellStyle(fill=WHITE, bold=True)
    if role is Role.OBSERVATION:
        return CellStyle(fill=palette.observation)
    if role is Role.BODY_NAME:
        return CellStyle(horizontal="left")
    return CellStyle()


def thin_border(color: str) -> Border:
    side = Side(style="thin", color=color)
    return Border(left=side, right=side, top=side, bottom=side)


def apply_style(cell, style: CellStyle, border: Border):
    """Write a style descriptor onto an openpyxl cell."""
    cell.border = border
    cell.alignment = Alignment(
        horizontal=style.horizontal,
        vertical=style.vertical,
        text_rotation=style.rotation,
        wrap_text=style.wrap or None,
    )
    if style.fill:
        cell.fill = PatternFill(start_color=style.fill, end_color=style.fill, fill_type="solid")
    if style.bold:
        cell.font = Font(bold=True)
