"""Snapshot entities and the parent-id index over the evaluation hierarchy."""

from collections import defaultdict
from dataclasses import MISSING, dataclass, field, fields
from typing import Any, Iterable
import logging
import unicodedata

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot payload cannot be read at all."""


@dataclass(frozen=True)
class Student:
    id: int
    full_name: str


@dataclass(frozen=True)
class Session:
    id: int
    number: int
    title: str | None = None

    @property
    def label(self) -> str:
        return self.title or f"S{self.number}"


@dataclass(frozen=True)
class Competency:
    id: int
    session_id: int
    display_name: str


@dataclass(frozen=True)
class Ability:
    id: int
    competency_id: int
    display_name: str


@dataclass(frozen=True)
class Criterion:
    id: int
    ability_id: int
    display_name: str


@dataclass(frozen=True)
class GradeValue:
    student_id: int
    criterion_id: int
    value: str


@dataclass(frozen=True)
class Observation:
    student_id: int
    ability_id: int
    observation: str


def _build(entity_cls, items: Iterable[dict[str, Any]], key: str) -> tuple:
    names = [f.name for f in fields(entity_cls)]
    required = [f.name for f in fields(entity_cls) if f.default is MISSING]
    built = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise SnapshotError(f"{key}[{position}] is not an object")
        missing = [name for name in required if name not in item]
        if missing:
            raise SnapshotError(
                f"{key}[{position}] is missing {', '.join(missing)}"
            )
        built.append(entity_cls(**{name: item.get(name) for name in names}))
    return tuple(built)


@dataclass(frozen=True)
class Snapshot:
    """
    Denormalized evaluation data for one section.

    This is the payload of the section's consolidated endpoint. The export
    engine only reads it.
    """

    students: tuple[Student, ...] = ()
    sessions: tuple[Session, ...] = ()
    competencies: tuple[Competency, ...] = ()
    abilities: tuple[Ability, ...] = ()
    criteria: tuple[Criterion, ...] = ()
    values: tuple[GradeValue, ...] = ()
    observations: tuple[Observation, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        """
        Build a snapshot from decoded JSON.

        Missing arrays are treated as empty. Extra keys on entities are
        ignored.

        Raises:
            SnapshotError: If the payload is not an object, an entity array
                is not a list, or an entity lacks a required key.
        """
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot must be a JSON object")

        arrays = {}
        for key in ("students", "sessions", "competencies", "abilities",
                    "criteria", "values", "observations"):
            items = data.get(key) or []
            if not isinstance(items, list):
                raise SnapshotError(f"'{key}' must be a list")
            arrays[key] = items

        return cls(
            students=_build(Student, arrays["students"], "students"),
            sessions=_build(Session, arrays["sessions"], "sessions"),
            competencies=_build(Competency, arrays["competencies"], "competencies"),
            abilities=_build(Ability, arrays["abilities"], "abilities"),
            criteria=_build(Criterion, arrays["criteria"], "criteria"),
            values=_build(GradeValue, arrays["values"], "values"),
            observations=_build(Observation, arrays["observations"], "observations"),
        )


def sort_key(text: str) -> tuple[str, str]:
    """
    Collation key for display names.

    Compares accent- and case-insensitively first, then by the raw text so
    the order stays total and deterministic.
    """
    text = text or ""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text


def _group(items: Iterable, parent_attr: str) -> dict[int, tuple]:
    groups: dict[int, list] = defaultdict(list)
    for item in items:
        groups[getattr(item, parent_attr)].append(item)
    return {
        parent_id: tuple(sorted(children, key=lambda c: sort_key(c.display_name)))
        for parent_id, children in groups.items()
    }


@dataclass(frozen=True)
class Hierarchy:
    """
    Ordered parent-id to children maps.

    The order here is the column order of the export; every consumer must
    walk the hierarchy through this object.
    """

    sessions: tuple[Session, ...]
    competencies_by_session: dict[int, tuple[Competency, ...]] = field(default_factory=dict)
    abilities_by_competency: dict[int, tuple[Ability, ...]] = field(default_factory=dict)
    criteria_by_ability: dict[int, tuple[Criterion, ...]] = field(default_factory=dict)

    def competencies(self, session_id: int) -> tuple[Competency, ...]:
        return self.competencies_by_session.get(session_id, ())

    def abilities(self, competency_id: int) -> tuple[Ability, ...]:
        return self.abilities_by_competency.get(competency_id, ())

    def criteria(self, ability_id: int) -> tuple[Criterion, ...]:
        return self.criteria_by_ability.get(ability_id, ())


def index_hierarchy(snapshot: Snapshot) -> Hierarchy:
    """Group competencies, abilities and criteria under their parents."""
    hierarchy = Hierarchy(
        sessions=tuple(sorted(snapshot.sessions, key=lambda s: s.number)),
        competencies_by_session=_group(snapshot.competencies, "session_id"),
        abilities_by_competency=_group(snapshot.abilities, "competency_id"),
        criteria_by_ability=_group(snapshot.criteria, "ability_id"),
    )

    if logger.isEnabledFor(logging.DEBUG):
        session_ids = {s.id for s in snapshot.sessions}
        competency_ids = {c.id for c in snapshot.competencies}
        ability_ids = {a.id for a in snapshot.abilities}
        dangling = (
            sum(1 for c in snapshot.competencies if c.session_id not in session_ids)
            + sum(1 for a in snapshot.abilities if a.competency_id not in competency_ids)
            + sum(1 for cr in snapshot.criteria if cr.ability_id not in ability_ids)
        )
        if dangling:
            logger.debug("Skipping %d entities with unknown parents", dangling)

    return hierarchy
