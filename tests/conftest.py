import pytest

from consolidated_export import Snapshot

LONG_TEXT = (
    "Formula preguntas pertinentes sobre el fenómeno observado, pero todavía "
    "necesita apoyo para distinguir entre variables dependientes e "
    "independientes al plantear su hipótesis de trabajo en grupo."
)


def scenario_payload() -> dict:
    """1 session, 1 competency, 1 ability with 2 criteria, 2 students."""
    return {
        "students": [
            {"id": 1, "full_name": "Quispe, Rosa"},
            {"id": 2, "full_name": "Huamán, Pedro"},
        ],
        "sessions": [{"id": 1, "number": 1, "title": "Session 1"}],
        "competencies": [{"id": 10, "session_id": 1, "display_name": "Resuelve problemas"}],
        "abilities": [{"id": 100, "competency_id": 10, "display_name": "Traduce cantidades"}],
        "criteria": [
            {"id": 1000, "ability_id": 100, "display_name": "C1"},
            {"id": 1001, "ability_id": 100, "display_name": "C2"},
        ],
        "values": [
            {"student_id": 1, "criterion_id": 1000, "value": "AD"},
            {"student_id": 1, "criterion_id": 1001, "value": "AD"},
            {"student_id": 2, "criterion_id": 1000, "value": "B"},
            {"student_id": 2, "criterion_id": 1001, "value": "B"},
        ],
        "observations": [],
    }


def rich_payload() -> dict:
    """
    Two reachable sessions out of order, one empty session, a zero-criteria
    ability, accented names, dangling rows and a long observation.

    Column layout (0-based):
        2 Oral, 3 obs Expresa, 4 avg Expresa, 5 avg Comunica ideas,
        6 obs Argumenta, 7 avg Argumenta, 8 C1, 9 C2, 10 obs Traduce,
        11 avg Traduce, 12 avg Resuelve problemas,
        13 Conclusión, 14 Evidencia, 15 Hipótesis, 16 obs Problematiza,
        17 avg Problematiza, 18 avg Indaga
    """
    return {
        "students": [
            {"id": 1, "full_name": "Zapata, Ana"},
            {"id": 2, "full_name": "Álvarez, Luis"},
        ],
        "sessions": [
            {"id": 2, "number": 2, "title": None},
            {"id": 1, "number": 1, "title": "Week 1"},
            {"id": 3, "number": 3, "title": "Empty"},
        ],
        "competencies": [
            {"id": 10, "session_id": 1, "display_name": "Resuelve problemas"},
            {"id": 11, "session_id": 1, "display_name": "Comunica ideas"},
            {"id": 20, "session_id": 2, "display_name": "Indaga"},
            {"id": 99, "session_id": 42, "display_name": "Orphan"},
        ],
        "abilities": [
            {"id": 100, "competency_id": 10, "display_name": "Traduce cantidades"},
            {"id": 101, "competency_id": 10, "display_name": "Argumenta"},
            {"id": 110, "competency_id": 11, "display_name": "Expresa"},
            {"id": 200, "competency_id": 20, "display_name": "Problematiza"},
        ],
        "criteria": [
            {"id": 1000, "ability_id": 100, "display_name": "C2"},
            {"id": 1001, "ability_id": 100, "display_name": "C1"},
            {"id": 1100, "ability_id": 110, "display_name": "Oral"},
            {"id": 2000, "ability_id": 200, "display_name": "Hipótesis"},
            {"id": 2001, "ability_id": 200, "display_name": "Evidencia"},
            {"id": 2002, "ability_id": 200, "display_name": "Conclusión"},
            {"id": 9999, "ability_id": 777, "display_name": "Lost"},
        ],
        "values": [
            {"student_id": 1, "criterion_id": 1001, "value": "AD"},
            {"student_id": 1, "criterion_id": 1000, "value": "A"},
            {"student_id": 1, "criterion_id": 1100, "value": "B"},
            {"student_id": 1, "criterion_id": 2000, "value": "C"},
            {"student_id": 1, "criterion_id": 2001, "value": "X"},
            {"student_id": 2, "criterion_id": 1001, "value": "B"},
            {"student_id": 2, "criterion_id": 1000, "value": "C"},
            {"student_id": 2, "criterion_id": 2002, "value": "A"},
            {"student_id": 5, "criterion_id": 1000, "value": "AD"},
        ],
        "observations": [
            {"student_id": 1, "ability_id": 100, "observation": "Needs more practice with fractions"},
            {"student_id": 2, "ability_id": 200, "observation": LONG_TEXT},
            {"student_id": 1, "ability_id": 101, "observation": ""},
            {"student_id": 2, "ability_id": 110, "observation": "Participa"},
            {"student_id": 3, "ability_id": 100, "observation": "ghost"},
        ],
    }


@pytest.fixture
def scenario_snapshot() -> Snapshot:
    return Snapshot.from_dict(scenario_payload())


@pytest.fixture
def rich_snapshot() -> Snapshot:
    return Snapshot.from_dict(rich_payload())
