"""Column allocation and header merge bookkeeping for the consolidated sheet.

Rows and columns here are 0-based. The worksheet writer converts them to
the 1-based coordinates openpyxl expects.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging

from openpyxl.utils import get_column_letter

from .hierarchy import Hierarchy

logger = logging.getLogger(__name__)

HEADER_ROWS = 4
NUMBER_COLUMN = 0
NAME_COLUMN = 1
FIRST_DATA_COLUMN = 2

SESSION_ROW = 0
COMPETENCY_ROW = 1
ABILITY_ROW = 2
CRITERION_ROW = 3


class ColumnKind(Enum):
    CRITERION = "criterion"
    OBSERVATION = "observation"
    ABILITY_AVERAGE = "ability_average"
    COMPETENCY_AVERAGE = "competency_average"


@dataclass(frozen=True)
class Column:
    """One data column; ``entity_id`` is the criterion, ability or competency id."""

    index: int
    kind: ColumnKind
    entity_id: int


@dataclass(frozen=True)
class MergeRange:
    start_row: int
    start_col: int
    end_row: int
    end_col: int

    def __post_init__(self):
        if self.start_row > self.end_row or self.start_col > self.end_col:
            raise ValueError(f"Inverted merge range: {self}")

    @property
    def coord(self) -> str:
        """Range in A1 notation, e.g. ``C1:F1``."""
        return (
            f"{get_column_letter(self.start_col + 1)}{self.start_row + 1}:"
            f"{get_column_letter(self.end_col + 1)}{self.end_row + 1}"
        )

    def overlaps(self, other: "MergeRange") -> bool:
        return not (
            self.end_row < other.start_row
            or other.end_row < self.start_row
            or self.end_col < other.start_col
            or other.end_col < self.start_col
        )


@dataclass(frozen=True)
class AbilityBlock:
    ability_id: int
    criterion_columns: tuple[int, ...]
    observation_column: int
    average_column: int


@dataclass(frozen=True)
class CompetencyBlock:
    competency_id: int
    abilities: tuple[AbilityBlock, ...]
    average_column: int

    @property
    def criterion_columns(self) -> tuple[int, ...]:
        return tuple(c for block in self.abilities for c in block.criterion_columns)


@dataclass
class ColumnSchema:
    """
    Layout of the consolidated sheet.

    Attributes:
        columns: Data column descriptors in column order.
        merges: Header merge ranges, fixed columns first.
        headers: Header texts keyed by ``(row, col)``.
        competencies: Competency blocks in column order, used for averages.
        width: Total column count (the final cursor value).
    """

    columns: list[Column] = field(default_factory=list)
    merges: list[MergeRange] = field(default_factory=list)
    headers: dict[tuple[int, int], str] = field(default_factory=dict)
    competencies: list[CompetencyBlock] = field(default_factory=list)
    width: int = FIRST_DATA_COLUMN

    def column(self, index: int) -> Column | None:
        offset = index - FIRST_DATA_COLUMN
        if 0 <= offset < len(self.columns):
            return self.columns[offset]
        return None

    def columns_of_kind(self, kind: ColumnKind) -> list[Column]:
        return [c for c in self.columns if c.kind is kind]


class _Builder:
    def __init__(self):
        self.schema = ColumnSchema()
        self.cursor = FIRST_DATA_COLUMN

    def claim(self, kind: ColumnKind, entity_id: int) -> int:
        index = self.cursor
        self.schema.columns.append(Column(index, kind, entity_id))
        self.cursor += 1
        return index

    def header(self, row: int, col: int, text: str):
        self.schema.headers[(row, col)] = text

    def merge(self, start_row: int, start_col: int, end_row: int, end_col: int):
        # Single cells are left alone; only real spans are recorded.
        if start_row == end_row and start_col == end_col:
            return
        self.schema.merges.append(MergeRange(start_row, start_col, end_row, end_col))

    def average_column(self, kind: ColumnKind, entity_id: int, label: str) -> int:
        col = self.claim(kind, entity_id)
        self.header(ABILITY_ROW, col, label)
        self.header(CRITERION_ROW, col, "")
        self.merge(ABILITY_ROW, col, CRITERION_ROW, col)
        return col


def build_column_schema(hierarchy: Hierarchy, labels: dict[str, str]) -> ColumnSchema:
    """
    Allocate every column of the consolidated sheet.

    Walks sessions, competencies, abilities and criteria in hierarchy order
    with one running cursor. Each ability gets its criterion columns, one
    observation column and one average column; each competency closes with
    its own average column. Sessions without competencies produce nothing.

    Args:
        hierarchy: Ordered parent-id index of the snapshot.
        labels: Header texts with keys ``number``, ``student``,
            ``ability_average``, ``competency_average`` and
            ``observation_icon``.

    Returns:
        The column schema; ``width`` equals
        ``2 + criteria + 2 * abilities + competencies`` over reachable
        entities.
    """
    b = _Builder()

    b.header(SESSION_ROW, NUMBER_COLUMN, labels["number"])
    b.header(SESSION_ROW, NAME_COLUMN, labels["student"])
    for row in range(1, HEADER_ROWS):
        b.header(row, NUMBER_COLUMN, "")
        b.header(row, NAME_COLUMN, "")
    b.merge(SESSION_ROW, NUMBER_COLUMN, CRITERION_ROW, NUMBER_COLUMN)
    b.merge(SESSION_ROW, NAME_COLUMN, CRITERION_ROW, NAME_COLUMN)

    for session in hierarchy.sessions:
        competencies = hierarchy.competencies(session.id)
        if not competencies:
            logger.debug("Session %s has no competencies, skipped", session.id)
            continue
        session_start = b.cursor

        for competency in competencies:
            competency_start = b.cursor
            ability_blocks = []

            for ability in hierarchy.abilities(competency.id):
                criteria = hierarchy.criteria(ability.id)
                criterion_columns = []
                for criterion in criteria:
                    col = b.claim(ColumnKind.CRITERION, criterion.id)
                    b.header(CRITERION_ROW, col, criterion.display_name)
                    criterion_columns.append(col)

                obs_col = b.claim(ColumnKind.OBSERVATION, ability.id)
                b.header(CRITERION_ROW, obs_col, labels["observation_icon"])

                if criterion_columns:
                    b.header(ABILITY_ROW, criterion_columns[0], ability.display_name)
                    b.merge(ABILITY_ROW, criterion_columns[0],
                            ABILITY_ROW, criterion_columns[-1])
                else:
                    b.header(ABILITY_ROW, obs_col, ability.display_name)

                avg_col = b.average_column(
                    ColumnKind.ABILITY_AVERAGE, ability.id, labels["ability_average"]
                )
                ability_blocks.append(AbilityBlock(
                    ability_id=ability.id,
                    criterion_columns=tuple(criterion_columns),
                    observation_column=obs_col,
                    average_column=avg_col,
                ))

            avg_col = b.average_column(
                ColumnKind.COMPETENCY_AVERAGE, competency.id, labels["competency_average"]
            )
            b.header(COMPETENCY_ROW, competency_start, competency.display_name)
            b.merge(COMPETENCY_ROW, competency_start, COMPETENCY_ROW, b.cursor - 1)
            b.schema.competencies.append(CompetencyBlock(
                competency_id=competency.id,
                abilities=tuple(ability_blocks),
                average_column=avg_col,
            ))

        b.header(SESSION_ROW, session_start, session.label)
        b.merge(SESSION_ROW, session_start, SESSION_ROW, b.cursor - 1)

    b.schema.width = b.cursor
    logger.debug(
        "Allocated %d columns and %d merges",
        b.schema.width, len(b.schema.merges),
    )
    return b.schema
