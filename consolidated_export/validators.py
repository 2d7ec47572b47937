"""Validation utilities for snapshots and configuration.

These checks are advisory. The export engine tolerates everything reported
here (dangling rows are skipped); front ends show the issues to the user.
"""

from dataclasses import asdict
from typing import Any
import pandas as pd

from .config_schema import normalize_color
from .hierarchy import Snapshot
from .scale import ORDINAL_SCALE

INVALID_SHEET_CHARS = set("[]:*?/\\")
MAX_SHEET_TITLE = 31


def validate_config(config: dict[str, Any]) -> list[dict[str, str]]:
    """
    Validate configuration and return list of issues.

    Returns:
        List of dicts with 'type' (error/warning) and 'message'.
    """
    issues = []

    # Check palette colors
    for name, value in config.get("palette", {}).items():
        try:
            normalize_color(value)
        except ValueError:
            issues.append({
                "type": "error",
                "message": f"Palette color '{name}' is not a hex color: {value}"
            })

    # Check output file name
    output_file = str(config.get("output_file", "")).strip()
    if not output_file:
        issues.append({
            "type": "error",
            "message": "Output file name is empty"
        })
    elif not output_file.lower().endswith(".xlsx"):
        issues.append({
            "type": "warning",
            "message": f"Output file '{output_file}' does not end in .xlsx"
        })

    # Check sheet names
    sheet_names = config.get("sheet_names", {})
    titles = [sheet_names.get("consolidated", ""), sheet_names.get("observations", "")]
    for title in titles:
        if not title or len(title) > MAX_SHEET_TITLE:
            issues.append({
                "type": "error",
                "message": f"Sheet name '{title}' must be 1-{MAX_SHEET_TITLE} characters"
            })
        elif INVALID_SHEET_CHARS & set(title):
            issues.append({
                "type": "error",
                "message": f"Sheet name '{title}' contains one of []:*?/\\"
            })

    if config.get("observations_sheet", True) and titles[0].lower() == titles[1].lower():
        issues.append({
            "type": "error",
            "message": "Consolidated and Observations sheets need different names"
        })

    header = config.get("labels", {}).get("observations_header")
    if header is not None and len(header) != 3:
        issues.append({
            "type": "error",
            "message": "Observations header needs exactly 3 titles"
        })

    return issues


def _frame(items: tuple, columns: list[str]) -> pd.DataFrame:
    return pd.DataFrame([asdict(item) for item in items], columns=columns)


def validate_snapshot(snapshot: Snapshot) -> list[dict[str, str]]:
    """
    Check a snapshot for data the export will skip or collapse.

    Returns:
        List of dicts with 'type' and 'message'.
    """
    issues = []

    if not snapshot.students:
        issues.append({
            "type": "warning",
            "message": "Snapshot has no students"
        })
    if not snapshot.sessions:
        issues.append({
            "type": "warning",
            "message": "Snapshot has no sessions"
        })

    session_ids = {s.id for s in snapshot.sessions}
    competency_ids = {c.id for c in snapshot.competencies}
    ability_ids = {a.id for a in snapshot.abilities}
    criterion_ids = {c.id for c in snapshot.criteria}
    student_ids = {s.id for s in snapshot.students}

    # Dangling parents drop whole subtrees from the export
    dangling = [
        ("competencies", "session", [c for c in snapshot.competencies if c.session_id not in session_ids]),
        ("abilities", "competency", [a for a in snapshot.abilities if a.competency_id not in competency_ids]),
        ("criteria", "ability", [c for c in snapshot.criteria if c.ability_id not in ability_ids]),
    ]
    for key, parent, orphans in dangling:
        if orphans:
            names = ", ".join(o.display_name for o in orphans[:5])
            issues.append({
                "type": "warning",
                "message": f"{len(orphans)} {key} reference an unknown {parent} and will be skipped: {names}"
            })

    values = _frame(snapshot.values, ["student_id", "criterion_id", "value"])
    observations = _frame(snapshot.observations, ["student_id", "ability_id", "observation"])

    # Check for duplicate pairs
    duplicate_values = int(values.duplicated(subset=["student_id", "criterion_id"]).sum())
    if duplicate_values:
        issues.append({
            "type": "warning",
            "message": f"{duplicate_values} duplicate grade(s) for the same student and criterion; the first one is used"
        })

    duplicate_obs = int(observations.duplicated(subset=["student_id", "ability_id"]).sum())
    if duplicate_obs:
        issues.append({
            "type": "warning",
            "message": f"{duplicate_obs} duplicate observation(s) for the same student and ability; the first one is used"
        })

    # Values outside the ordinal scale are shown but never averaged
    off_scale = values[~values["value"].isin(list(ORDINAL_SCALE)) & (values["value"].fillna("") != "")]
    if not off_scale.empty:
        literals = ", ".join(sorted(off_scale["value"].astype(str).unique()))
        issues.append({
            "type": "warning",
            "message": f"{len(off_scale)} grade(s) outside AD/A/B/C will not be averaged: {literals}"
        })

    unknown_values = values[
        ~values["student_id"].isin(student_ids) | ~values["criterion_id"].isin(criterion_ids)
    ]
    if not unknown_values.empty:
        issues.append({
            "type": "warning",
            "message": f"{len(unknown_values)} grade(s) reference an unknown student or criterion"
        })

    unknown_obs = observations[
        ~observations["student_id"].isin(student_ids) | ~observations["ability_id"].isin(ability_ids)
    ]
    if not unknown_obs.empty:
        issues.append({
            "type": "warning",
            "message": f"{len(unknown_obs)} observation(s) reference an unknown student or ability"
        })

    return issues
