"""Student-by-column matrix of the consolidated sheet."""

from dataclasses import dataclass
from typing import Any
import logging

import pandas as pd
from openpyxl.utils import get_column_letter

from .config_schema import ExportOptions
from .hierarchy import Snapshot, Student, sort_key
from .observations import ObservationIndex
from .scale import ordinal_mean
from .schema import (
    ABILITY_ROW,
    CRITERION_ROW,
    AbilityBlock,
    ColumnKind,
    ColumnSchema,
    CompetencyBlock,
    HEADER_ROWS,
)

logger = logging.getLogger(__name__)

BLANK = ""


@dataclass(frozen=True)
class MatrixRow:
    """
    One student line.

    ``number`` is the 1-based rank shown in the first column; ``cells`` maps
    data column index to the value written there.
    """

    number: int
    student: Student
    cells: dict[int, Any]

    @property
    def sheet_row(self) -> int:
        """0-based worksheet row of this student."""
        return HEADER_ROWS + self.number - 1


class AggregationPolicy:
    """
    Ability and competency averages over the ordinal scale.

    Both levels average the raw criterion literals of the row. Competency
    averages never reuse the rounded ability averages.
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled

    def _average(self, cells: dict[int, Any], columns: tuple[int, ...]) -> Any:
        if not self.enabled:
            return BLANK
        mean = ordinal_mean(cells.get(c, BLANK) for c in columns)
        return BLANK if mean is None else mean

    def ability_average(self, cells: dict[int, Any], block: AbilityBlock) -> Any:
        return self._average(cells, block.criterion_columns)

    def competency_average(self, cells: dict[int, Any], block: CompetencyBlock) -> Any:
        return self._average(cells, block.criterion_columns)


def order_students(snapshot: Snapshot, sort_students: bool = False) -> list[Student]:
    """Students in main-sheet order: snapshot order, or by name when asked."""
    students = list(snapshot.students)
    if sort_students:
        students.sort(key=lambda s: sort_key(s.full_name))
    return students


def populate_matrix(
    snapshot: Snapshot,
    schema: ColumnSchema,
    observations: ObservationIndex,
    options: ExportOptions,
) -> list[MatrixRow]:
    """
    Resolve every body cell of the consolidated sheet.

    Criterion cells hold the student's grade literal or a blank. Observation
    cells hold the glyph when the student has an observation for that
    ability (blank when the glyph is disabled); the text itself stays on
    the Observations sheet. Average cells follow the aggregation policy and
    are blank, never zero, when it is disabled or has nothing to average.
    """
    values: dict[tuple[int, int], str] = {}
    for v in snapshot.values:
        values.setdefault((v.student_id, v.criterion_id), v.value)

    policy = AggregationPolicy(options.calculate_averages)
    icon = options.observation_icon if options.show_icon else BLANK

    rows = []
    for number, student in enumerate(order_students(snapshot, options.sort_students), 1):
        cells: dict[int, Any] = {}

        for column in schema.columns:
            if column.kind is ColumnKind.CRITERION:
                cells[column.index] = values.get((student.id, column.entity_id), BLANK)
            elif column.kind is ColumnKind.OBSERVATION:
                present = observations.has(student.id, column.entity_id)
                cells[column.index] = icon if present else BLANK

        # Averages read the criterion cells filled above.
        for competency in schema.competencies:
            for ability in competency.abilities:
                cells[ability.average_column] = policy.ability_average(cells, ability)
            cells[competency.average_column] = policy.competency_average(cells, competency)

        rows.append(MatrixRow(number=number, student=student, cells=cells))

    logger.debug("Populated %d rows x %d columns", len(rows), schema.width)
    return rows


def column_label(schema: ColumnSchema, col: int) -> str:
    """Flat preview label for a data column, prefixed with its letter."""
    text = schema.headers.get((CRITERION_ROW, col)) or schema.headers.get((ABILITY_ROW, col), "")
    return f"{get_column_letter(col + 1)} {text}".strip()


def matrix_to_frame(
    schema: ColumnSchema,
    rows: list[MatrixRow],
    options: ExportOptions,
) -> pd.DataFrame:
    """Tabular preview of the consolidated sheet body."""
    labels = [column_label(schema, c.index) for c in schema.columns]
    data = [
        [row.number, row.student.full_name] + [row.cells.get(c.index, BLANK) for c in schema.columns]
        for row in rows
    ]
    return pd.DataFrame(data, columns=[options.number_label, options.student_label] + labels)
