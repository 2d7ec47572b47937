#!/usr/bin/env python3
"""
Consolidated Grade Export

Reads a section snapshot (the JSON returned by the section's consolidated
endpoint) and an optional config.json, then writes the consolidated Excel
workbook with its Observations sheet.

Usage:
    1. Save the section snapshot as JSON (students, sessions, competencies,
       abilities, criteria, values, observations)
    2. Optionally edit config.json (averages, colors, file name)
    3. Run: python generate.py snapshot.json [config.json]
    4. Open the generated Excel file
"""

import json
import sys
from pathlib import Path

from consolidated_export import (
    ExportError,
    ExportOptions,
    Snapshot,
    SnapshotError,
    export_consolidated,
    merge_config,
    validate_config,
    validate_snapshot,
)


def load_json(path: Path) -> dict:
    """Load a JSON document from disk."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_file(data: bytes, file_name: str):
    """Deliver the workbook by writing it next to the working directory."""
    Path(file_name).write_bytes(data)


def print_issues(issues: list[dict[str, str]]):
    for issue in issues:
        marker = "❌" if issue["type"] == "error" else "⚠️ "
        print(f"   {marker} {issue['message']}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = sys.argv[1:] if argv is None else argv

    print("📊 Consolidated Grade Export")
    print("=" * 40)

    if not args:
        print("❌ Error: no snapshot given!")
        print("   Usage: python generate.py snapshot.json [config.json]")
        return 1

    # Load snapshot
    snapshot_path = Path(args[0])
    if not snapshot_path.exists():
        print(f"❌ Error: {snapshot_path} not found!")
        return 1

    try:
        snapshot = Snapshot.from_dict(load_json(snapshot_path))
    except json.JSONDecodeError as e:
        print(f"❌ Error: {snapshot_path} is not valid JSON ({e})")
        return 1
    except SnapshotError as e:
        print(f"❌ Error: {snapshot_path} is not a section snapshot ({e})")
        return 1

    print(f"✓ Loaded snapshot from {snapshot_path}")

    # Load configuration
    user_config = {}
    if len(args) > 1:
        config_path = Path(args[1])
        if not config_path.exists():
            print(f"❌ Error: {config_path} not found!")
            return 1
        try:
            user_config = load_json(config_path)
        except json.JSONDecodeError as e:
            print(f"❌ Error: {config_path} is not valid JSON ({e})")
            return 1
        print(f"✓ Loaded configuration from {config_path}")

    config = merge_config(user_config)
    config_issues = validate_config(config)
    if config_issues:
        print("\n⚙️  Configuration issues:")
        print_issues(config_issues)
    if any(issue["type"] == "error" for issue in config_issues):
        return 1

    snapshot_issues = validate_snapshot(snapshot)
    if snapshot_issues:
        print("\n🔎 Snapshot issues (export continues):")
        print_issues(snapshot_issues)

    # Generate workbook
    print("\n📝 Generating Excel file...")
    options = ExportOptions.from_config(config)
    try:
        export_consolidated(snapshot, options, deliver=write_file)
    except ExportError as e:
        print(f"❌ Error: {e}")
        return 1
    except OSError as e:
        print(f"❌ Error: could not write {options.file_name} ({e})")
        return 1
    print(f"✓ Saved to {options.file_name}")

    # Summary
    print("\n" + "=" * 40)
    print("📋 Summary:")
    print(f"   Students: {len(snapshot.students)}")
    print(f"   Sessions: {len(snapshot.sessions)}")
    print(f"   Competencies: {len(snapshot.competencies)}")
    print(f"   Abilities: {len(snapshot.abilities)}")
    print(f"   Criteria: {len(snapshot.criteria)}")
    print(f"   Observations: {sum(1 for o in snapshot.observations if o.observation)}")
    print(f"   Averages: {'calculated' if options.calculate_averages else 'left blank'}")

    print(f"\n🎉 Open {options.file_name} to review the consolidated grades!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
