import pytest

from consolidated_export import ExportOptions
from consolidated_export.config_schema import Palette
from consolidated_export.hierarchy import Snapshot, index_hierarchy
from consolidated_export.schema import build_column_schema
from consolidated_export.styles import (
    WHITE,
    CellStyle,
    Role,
    body_role,
    header_role,
    style_for,
)

from conftest import rich_payload

PALETTE = ExportOptions().palette


@pytest.fixture
def schema():
    snapshot = Snapshot.from_dict(rich_payload())
    return build_column_schema(index_hierarchy(snapshot), ExportOptions().header_labels())


@pytest.mark.parametrize("row, col, role", [
    (0, 0, Role.FIXED),
    (3, 1, Role.FIXED),
    (0, 5, Role.SESSION),
    (1, 9, Role.COMPETENCY),
    (2, 8, Role.ABILITY),
    (2, 9, Role.ABILITY),
    (2, 10, Role.ABILITY),          # blank cell above an observation column
    (2, 6, Role.ABILITY),           # zero-criteria ability name
    (3, 8, Role.CRITERION),
    (3, 10, Role.OBSERVATION),
    (3, 6, Role.OBSERVATION),
    (2, 11, Role.ABILITY_AVERAGE),
    (3, 11, Role.ABILITY_AVERAGE),
    (2, 12, Role.COMPETENCY_AVERAGE),
    (3, 18, Role.COMPETENCY_AVERAGE),
])
def test_header_roles(schema, row, col, role):
    assert header_role(schema, row, col) is role


def test_body_roles():
    assert body_role(0) is Role.BODY_NUMBER
    assert body_role(1) is Role.BODY_NAME
    assert body_role(7) is Role.BODY_DATA


def test_header_styles_follow_palette():
    assert style_for(Role.SESSION, PALETTE) == CellStyle(fill=PALETTE.session, bold=True)
    assert style_for(Role.CRITERION, PALETTE).fill == WHITE
    assert style_for(Role.OBSERVATION, PALETTE) == CellStyle(fill="FFFFF9C4")


def test_average_headers_are_rotated():
    assert style_for(Role.ABILITY_AVERAGE, PALETTE).rotation == 90
    assert style_for(Role.ABILITY_AVERAGE, PALETTE).fill == "FFDEECF7"
    assert style_for(Role.COMPETENCY_AVERAGE, PALETTE).rotation == 90
    assert style_for(Role.COMPETENCY_AVERAGE, PALETTE).fill == PALETTE.ability


def test_body_alignment():
    assert style_for(Role.BODY_NUMBER, PALETTE).horizontal == "center"
    assert style_for(Role.BODY_NAME, PALETTE).horizontal == "left"
    assert style_for(Role.BODY_DATA, PALETTE) == CellStyle()


def test_palette_override():
    palette = Palette.from_config({"session": "#123456"})
    assert style_for(Role.SESSION, palette).fill == "FF123456"
    assert style_for(Role.COMPETENCY, palette).fill == PALETTE.competency
