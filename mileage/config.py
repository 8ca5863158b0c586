"""Engine settings loaded from an optional YAML file."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

import yaml
from jsonschema import ValidationError, validate

from .chronology import FUTURE_SKEW_MINUTES, GAP_TOLERANCE_KM
from .errors import ConfigError
from .milestones import MILESTONE_LOOKBACK, MILESTONES

CONFIG_ENV_VAR = "MILEAGE_CONFIG"
DEFAULT_CONFIG_FILE = "mileage.yaml"

SETTINGS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "gapToleranceKm": {"type": "number", "minimum": 0},
        "futureSkewMinutes": {"type": "number", "minimum": 0},
        "milestoneLookback": {"type": "integer", "minimum": 1},
        "milestones": {
            "type": "array",
            "items": {"type": "integer", "minimum": 1},
            "uniqueItems": True,
        },
    },
}


@dataclass(frozen=True)
class Settings:
    gap_tolerance_km: float = GAP_TOLERANCE_KM
    future_skew_minutes: float = FUTURE_SKEW_MINUTES
    milestone_lookback: int = MILESTONE_LOOKBACK
    milestones: Tuple[int, ...] = field(default=MILESTONES)


def load_settings(filename: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from a YAML file.

    Lookup order: explicit filename, $MILEAGE_CONFIG, ./mileage.yaml.
    A missing file (other than an explicit one) yields the defaults.
    """
    explicit = filename is not None
    if filename is None:
        filename = os.environ.get(CONFIG_ENV_VAR)
        explicit = filename is not None
    path = Path(filename or DEFAULT_CONFIG_FILE)

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return Settings()

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    try:
        validate(instance=data, schema=SETTINGS_SCHEMA)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e.message}") from e

    defaults = Settings()
    return Settings(
        gap_tolerance_km=data.get("gapToleranceKm", defaults.gap_tolerance_km),
        future_skew_minutes=data.get("futureSkewMinutes", defaults.future_skew_minutes),
        milestone_lookback=data.get("milestoneLookback", defaults.milestone_lookback),
        milestones=tuple(sorted(data.get("milestones", defaults.milestones))),
    )
