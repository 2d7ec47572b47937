"""Observations table and the hyperlinks that point into it."""

from dataclasses import dataclass, field
import logging

from openpyxl.worksheet.hyperlink import Hyperlink

from .hierarchy import Snapshot, sort_key
from .schema import ColumnKind, ColumnSchema

logger = logging.getLogger(__name__)

TOOLTIP_LIMIT = 120
ELLIPSIS = "..."

# The Observations sheet has one header row; table row 0 lands on sheet row 2.
FIRST_OBSERVATION_ROW = 2


@dataclass(frozen=True)
class ObservationRow:
    student_id: int
    ability_id: int
    student_name: str
    ability_name: str
    text: str


@dataclass
class ObservationIndex:
    """
    Alphabetized observations plus a reverse lookup.

    ``rows`` is sorted by student name, then ability name. ``sheet_rows``
    maps ``(student_id, ability_id)`` to the 1-based row of that
    observation on the Observations sheet.
    """

    rows: list[ObservationRow] = field(default_factory=list)
    sheet_rows: dict[tuple[int, int], int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.rows)

    def row_for(self, student_id: int, ability_id: int) -> ObservationRow | None:
        sheet_row = self.sheet_rows.get((student_id, ability_id))
        if sheet_row is None:
            return None
        return self.rows[sheet_row - FIRST_OBSERVATION_ROW]

    def has(self, student_id: int, ability_id: int) -> bool:
        return (student_id, ability_id) in self.sheet_rows


def build_observation_index(snapshot: Snapshot) -> ObservationIndex:
    """
    Collect every non-empty observation of a known student and ability.

    Empty texts are ignored. When a pair occurs twice the
    first occurrence wins.
    """
    students = {s.id: s for s in snapshot.students}
    abilities = {a.id: a for a in snapshot.abilities}

    seen: set[tuple[int, int]] = set()
    rows = []
    for obs in snapshot.observations:
        key = (obs.student_id, obs.ability_id)
        if not obs.observation or key in seen:
            continue
        student = students.get(obs.student_id)
        ability = abilities.get(obs.ability_id)
        if student is None or ability is None:
            continue
        seen.add(key)
        rows.append(ObservationRow(
            student_id=obs.student_id,
            ability_id=obs.ability_id,
            student_name=student.full_name,
            ability_name=ability.display_name,
            text=obs.observation,
        ))

    rows.sort(key=lambda r: (sort_key(r.student_name), sort_key(r.ability_name)))
    index = ObservationIndex(rows=rows)
    for position, row in enumerate(rows):
        index.sheet_rows[(row.student_id, row.ability_id)] = position + FIRST_OBSERVATION_ROW

    logger.debug("Indexed %d observations", len(rows))
    return index


def truncate_tooltip(text: str, limit: int = TOOLTIP_LIMIT) -> str:
    """Shorten ``text`` to ``limit`` characters, ending in an ellipsis if cut."""
    if len(text) <= limit:
        return text
    return text[:limit - len(ELLIPSIS)] + ELLIPSIS


def sheet_location(sheet_title: str, coordinate: str) -> str:
    """In-workbook link location such as ``'Observations'!A2``."""
    quoted = sheet_title.replace("'", "''")
    return f"'{quoted}'!{coordinate}"


def observation_link(
    index: ObservationIndex,
    student_id: int,
    ability_id: int,
    observations_title: str | None,
    fallback_location: str,
) -> Hyperlink | None:
    """
    Build the hyperlink for one observation cell.

    Args:
        index: Observations index for the export.
        student_id: Student of the row.
        ability_id: Ability of the observation column.
        observations_title: Title of the Observations sheet, or None when the
            sheet is not emitted.
        fallback_location: Location used when there is no row to jump to,
            normally the cell's own address.

    Returns:
        A Hyperlink carrying the truncated text as tooltip, or None when the
        student has no observation for that ability.
    """
    row = index.row_for(student_id, ability_id)
    if row is None:
        return None

    if observations_title is not None:
        location = sheet_location(
            observations_title, f"A{index.sheet_rows[(student_id, ability_id)]}"
        )
    else:
        location = fallback_location

    return Hyperlink(ref="", location=location, tooltip=truncate_tooltip(row.text))


def bind_observation_links(
    ws,
    schema: ColumnSchema,
    rows: list,
    index: ObservationIndex,
    observations_title: str | None,
) -> int:
    """
    Attach hyperlinks and tooltips to every present observation cell.

    Links point at the matching Observations row; when that sheet is not
    emitted (``observations_title`` is None) each link targets its own cell
    so the tooltip still shows the text.

    Args:
        ws: Consolidated worksheet, already populated.
        schema: Column schema of the sheet.
        rows: Matrix rows (``MatrixRow``) in sheet order.
        index: Observations index for the export.
        observations_title: Title of the Observations sheet, or None.

    Returns:
        Number of links attached.
    """
    observation_columns = schema.columns_of_kind(ColumnKind.OBSERVATION)
    bound = 0
    for row in rows:
        for column in observation_columns:
            cell = ws.cell(row=row.sheet_row + 1, column=column.index + 1)
            link = observation_link(
                index,
                row.student.id,
                column.entity_id,
                observations_title,
                fallback_location=sheet_location(ws.title, cell.coordinate),
            )
            if link is None:
                continue
            cell.hyperlink = link
            bound += 1

    logger.debug("Bound %d observation links", bound)
    return bound
