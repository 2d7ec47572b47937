import pytest

from consolidated_export import ExportOptions
from consolidated_export.hierarchy import Snapshot, index_hierarchy
from consolidated_export.matrix import (
    BLANK,
    AggregationPolicy,
    matrix_to_frame,
    order_students,
    populate_matrix,
)
from consolidated_export.observations import build_observation_index
from consolidated_export.scale import ordinal_mean, scale_weight
from consolidated_export.schema import AbilityBlock, CompetencyBlock, build_column_schema

from conftest import rich_payload, scenario_payload


def populate(payload, **options):
    snapshot = Snapshot.from_dict(payload)
    opts = ExportOptions(**options)
    schema = build_column_schema(index_hierarchy(snapshot), opts.header_labels())
    rows = populate_matrix(snapshot, schema, build_observation_index(snapshot), opts)
    return schema, rows


def test_scale_weights():
    assert [scale_weight(v) for v in ("AD", "A", "B", "C")] == [4, 3, 2, 1]
    assert scale_weight("D") is None
    assert scale_weight("") is None


def test_ordinal_mean():
    assert ordinal_mean(["AD", "A", "B"]) == 3.00
    assert ordinal_mean(["AD", "A", "A"]) == 3.33
    assert ordinal_mean(["AD", "NP", ""]) == 4.0
    assert ordinal_mean([]) is None
    assert ordinal_mean(["X", ""]) is None


def test_ordinal_mean_rounds_halves_up():
    assert ordinal_mean(["AD"] + ["A"] * 7) == 3.13
    assert ordinal_mean(["AD"] * 5 + ["B"] * 3) == 3.25
    assert ordinal_mean(["A"] * 5 + ["B"] * 3) == 2.63


def test_eight_criteria_average_rounds_half_up():
    payload = scenario_payload()
    payload["criteria"] = [
        {"id": 1000 + i, "ability_id": 100, "display_name": f"C{i + 1}"} for i in range(8)
    ]
    payload["values"] = [
        {"student_id": 1, "criterion_id": 1000 + i, "value": "AD" if i == 0 else "A"}
        for i in range(8)
    ]
    schema, rows = populate(payload, calculate_averages=True)
    competency = schema.competencies[0]
    assert rows[0].cells[competency.abilities[0].average_column] == 3.13
    assert rows[0].cells[competency.average_column] == 3.13


def test_scenario_rows_keep_snapshot_order_and_blank_averages():
    schema, rows = populate(scenario_payload())
    assert [r.student.full_name for r in rows] == ["Quispe, Rosa", "Huamán, Pedro"]
    assert [r.number for r in rows] == [1, 2]
    assert [r.sheet_row for r in rows] == [4, 5]
    first = rows[0].cells
    assert (first[2], first[3]) == ("AD", "AD")
    assert first[4] == BLANK
    assert first[5] == BLANK and first[6] == BLANK


def test_averages_when_enabled():
    payload = scenario_payload()
    payload["values"] = [
        {"student_id": 1, "criterion_id": 1000, "value": "AD"},
        {"student_id": 1, "criterion_id": 1001, "value": "A"},
    ]
    payload["criteria"].append({"id": 1002, "ability_id": 100, "display_name": "C3"})
    payload["values"].append({"student_id": 1, "criterion_id": 1002, "value": "B"})
    schema, rows = populate(payload, calculate_averages=True)
    block = schema.competencies[0].abilities[0]
    assert rows[0].cells[block.average_column] == 3.00
    assert rows[0].cells[schema.competencies[0].average_column] == 3.00


def test_disabled_average_is_blank_not_zero():
    payload = scenario_payload()
    schema, rows = populate(payload, calculate_averages=False)
    cell = rows[0].cells[schema.competencies[0].abilities[0].average_column]
    assert cell == ""
    assert cell != 0 and cell != "0.00"


def test_nothing_to_average_is_blank():
    schema, rows = populate(rich_payload(), calculate_averages=True)
    luis = rows[1].cells
    assert luis[4] == BLANK     # Expresa, no grades
    assert luis[7] == BLANK     # Argumenta, no criteria
    assert luis[11] == 1.5      # Traduce: B, C
    assert luis[17] == 3.0      # Problematiza: A


def test_off_scale_literals_shown_but_not_averaged():
    schema, rows = populate(rich_payload(), calculate_averages=True)
    ana = rows[0].cells
    assert ana[14] == "X"
    assert ana[17] == 1.0
    assert ana[18] == 1.0


def test_competency_average_uses_raw_values():
    policy = AggregationPolicy(enabled=True)
    first = AbilityBlock(1, (2, 3, 4), 5, 6)
    second = AbilityBlock(2, (7,), 8, 9)
    competency = CompetencyBlock(1, (first, second), 10)
    cells = {2: "AD", 3: "A", 4: "A", 7: "B"}
    assert policy.ability_average(cells, first) == 3.33
    assert policy.ability_average(cells, second) == 2.0
    # (4+3+3+2)/4, not (3.33+2)/2
    assert policy.competency_average(cells, competency) == 3.0


def test_observation_cells_flag_presence_only():
    schema, rows = populate(rich_payload())
    icon = ExportOptions().observation_icon
    ana, luis = rows[0].cells, rows[1].cells
    assert ana[10] == icon
    assert ana[6] == BLANK          # empty observation text
    assert luis[3] == icon
    assert luis[16] == icon
    assert "fractions" not in str(ana[10])


def test_observation_icon_can_be_hidden():
    schema, rows = populate(rich_payload(), show_icon=False)
    assert rows[0].cells[10] == BLANK


def test_dangling_values_are_ignored():
    schema, rows = populate(rich_payload())
    # Student 5 is not on the roster and criterion 9999 hangs off no ability.
    assert len(rows) == 2
    assert [r.cells[9] for r in rows] == ["A", "C"]
    assert 9999 not in {c.entity_id for c in schema.columns}


def test_first_duplicate_value_wins():
    payload = scenario_payload()
    payload["values"].append({"student_id": 1, "criterion_id": 1000, "value": "C"})
    schema, rows = populate(payload)
    assert rows[0].cells[2] == "AD"


@pytest.mark.parametrize("sort_students, expected", [
    (False, ["Zapata, Ana", "Álvarez, Luis"]),
    (True, ["Álvarez, Luis", "Zapata, Ana"]),
])
def test_student_order(sort_students, expected):
    snapshot = Snapshot.from_dict(rich_payload())
    assert [s.full_name for s in order_students(snapshot, sort_students)] == expected


def test_matrix_frame_preview():
    schema, rows = populate(scenario_payload())
    frame = matrix_to_frame(schema, rows, ExportOptions())
    assert list(frame.columns[:4]) == ["N°", "FULL NAME", "C C1", "D C2"]
    assert frame.shape == (2, 7)
    assert frame.iloc[1]["FULL NAME"] == "Huamán, Pedro"


def test_whitespace_only_observation_gets_the_glyph():
    payload = scenario_payload()
    payload["observations"] = [{"student_id": 2, "ability_id": 100, "observation": "  "}]
    schema, rows = populate(payload)
    obs_col = schema.competencies[0].abilities[0].observation_column
    assert rows[0].cells[obs_col] == ""
    assert rows[1].cells[obs_col] == ExportOptions().observation_icon
