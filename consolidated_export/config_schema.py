"""Configuration schema and defaults for the consolidated export."""

from dataclasses import dataclass
from typing import Any
import copy

DEFAULT_CONFIG: dict[str, Any] = {
    "output_file": "consolidado.xlsx",
    "observations_sheet": True,
    "calculate_averages": False,
    "show_icon": True,
    "sort_students": False,
    "palette": {
        "session": "FFF2F3F5",
        "competency": "FFF2F3F5",
        "ability": "FFE8EAED",
        "fixed_columns": "FFE8EAED",
        "observation": "FFFFF9C4",
        "ability_average": "FFDEECF7",
        "border": "FF444444"
    },
    "labels": {
        "number": "N°",
        "student": "FULL NAME",
        "ability_average": "AVERAGE CAPACITY",
        "competency_average": "AVERAGE",
        "observation_icon": "\U0001F4DD",
        "observations_header": ["Student", "Ability", "Observation"]
    },
    "sheet_names": {
        "consolidated": "Consolidated",
        "observations": "Observations"
    }
}

NESTED_SECTIONS = ("palette", "labels", "sheet_names")
SCALAR_KEYS = (
    "output_file",
    "observations_sheet",
    "calculate_averages",
    "show_icon",
    "sort_students",
)


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(user_config: dict[str, Any]) -> dict[str, Any]:
    """
    Merge user configuration with defaults.

    User config values override defaults. Missing keys use default values.
    Nested sections (palette, labels, sheet names) merge key by key.
    """
    result = get_default_config()

    for key in SCALAR_KEYS:
        if key in user_config:
            result[key] = user_config[key]

    for section in NESTED_SECTIONS:
        if section in user_config:
            result[section].update(user_config[section])

    return result


def normalize_color(value: str) -> str:
    """
    Normalize a color to opaque ARGB (``FFRRGGBB``).

    Accepts ``RRGGBB``, ``#RRGGBB`` and ``AARRGGBB``. The alpha byte of an
    ARGB value is discarded, spreadsheet fills are always opaque.
    """
    color = str(value).strip().lstrip("#").upper()
    if len(color) == 8:
        color = color[2:]
    if len(color) != 6 or any(ch not in "0123456789ABCDEF" for ch in color):
        raise ValueError(f"Invalid color: {value!r}")
    return "FF" + color


@dataclass(frozen=True)
class Palette:
    """Fill and border colors, all normalized to ``FFRRGGBB``."""

    session: str
    competency: str
    ability: str
    fixed_columns: str
    observation: str
    ability_average: str
    border: str

    @classmethod
    def from_config(cls, palette: dict[str, str]) -> "Palette":
        defaults = DEFAULT_CONFIG["palette"]
        return cls(**{
            name: normalize_color(palette.get(name, defaults[name]))
            for name in defaults
        })


@dataclass(frozen=True)
class ExportOptions:
    """
    Everything the export engine needs besides the snapshot.

    Attributes:
        file_name: Name handed to the delivery callback.
        observations_sheet: Emit the secondary Observations sheet.
        calculate_averages: Fill ability/competency averages from the
            ordinal scale; when off those cells stay blank.
        show_icon: Render the observation glyph in observation cells.
        sort_students: Sort main-sheet rows by student name instead of
            keeping snapshot order.
        palette: Fill and border colors.
        number_label, student_label, ability_average_label,
        competency_average_label, observation_icon: Fixed header texts.
        observations_header: Column titles of the Observations sheet.
        consolidated_title: Title of the main sheet.
        observations_title: Title of the Observations sheet.
    """

    file_name: str = DEFAULT_CONFIG["output_file"]
    observations_sheet: bool = True
    calculate_averages: bool = False
    show_icon: bool = True
    sort_students: bool = False
    palette: Palette = Palette.from_config(DEFAULT_CONFIG["palette"])
    number_label: str = DEFAULT_CONFIG["labels"]["number"]
    student_label: str = DEFAULT_CONFIG["labels"]["student"]
    ability_average_label: str = DEFAULT_CONFIG["labels"]["ability_average"]
    competency_average_label: str = DEFAULT_CONFIG["labels"]["competency_average"]
    observation_icon: str = DEFAULT_CONFIG["labels"]["observation_icon"]
    observations_header: tuple[str, str, str] = tuple(
        DEFAULT_CONFIG["labels"]["observations_header"]
    )
    consolidated_title: str = DEFAULT_CONFIG["sheet_names"]["consolidated"]
    observations_title: str = DEFAULT_CONFIG["sheet_names"]["observations"]

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ExportOptions":
        """Build options from a (possibly partial) configuration dict."""
        config = merge_config(config)
        labels = config["labels"]
        return cls(
            file_name=config["output_file"],
            observations_sheet=bool(config["observations_sheet"]),
            calculate_averages=bool(config["calculate_averages"]),
            show_icon=bool(config["show_icon"]),
            sort_students=bool(config["sort_students"]),
            palette=Palette.from_config(config["palette"]),
            number_label=labels["number"],
            student_label=labels["student"],
            ability_average_label=labels["ability_average"],
            competency_average_label=labels["competency_average"],
            observation_icon=labels["observation_icon"],
            observations_header=tuple(labels["observations_header"]),
            consolidated_title=config["sheet_names"]["consolidated"],
            observations_title=config["sheet_names"]["observations"],
        )

    def header_labels(self) -> dict[str, str]:
        """Fixed header texts for the column schema builder."""
        return {
            "number": self.number_label,
            "student": self.student_label,
            "ability_average": self.ability_average_label,
            "competency_average": self.competency_average_label,
            "observation_icon": self.observation_icon if self.show_icon else "",
        }
