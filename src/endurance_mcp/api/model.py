"""
Domain types for coach-authored endurance prescriptions.

Only the prescription needs dataclasses: it is the nested structure the
plan editor stores and we must parse. The normalized workout and the
provider payloads stay as plain dicts.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from endurance_mcp.errors import MalformedPrescription
from endurance_mcp.sdk.types import (
    DurationType,
    Sport,
    StepType,
    TargetKind,
    TargetUnit,
    TARGET_RANGE_FIELDS,
    TARGET_UNITS,
)


@dataclass
class Duration:
    type: DurationType
    value: float


@dataclass
class PrimaryTarget:
    """Intensity target: either a zone or a sport-specific min/max range.

    Range values keep their prescription field names (minWatts, maxBpm, ...)
    until normalization picks the pair that matches the kind.
    """
    kind: TargetKind
    unit: TargetUnit
    zone: Optional[int] = None
    ranges: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict) -> "PrimaryTarget":
        kind = _parse_enum(TargetKind, d.get("kind"), "primary target kind")
        unit = _parse_enum(TargetUnit, d["unit"], "primary target unit") if d.get("unit") else TARGET_UNITS[kind]
        range_fields = TARGET_RANGE_FIELDS[kind]
        return cls(
            kind=kind,
            unit=unit,
            zone=d.get("zone"),
            ranges={name: d[name] for name in range_fields if d.get(name) is not None},
        )


@dataclass
class CadenceTarget:
    min_rpm: float
    max_rpm: float

    @classmethod
    def from_dict(cls, d: dict) -> "CadenceTarget":
        try:
            return cls(min_rpm=d["minRpm"], max_rpm=d["maxRpm"])
        except KeyError as e:
            raise MalformedPrescription(f"Cadence target requires {e.args[0]}")


@dataclass
class Step:
    type: StepType
    duration: Duration
    primary_target: Optional[PrimaryTarget] = None
    cadence_target: Optional[CadenceTarget] = None
    note: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Step":
        duration = d.get("duration")
        if not isinstance(duration, dict):
            raise MalformedPrescription("Step requires a duration")
        if duration.get("value") is None:
            raise MalformedPrescription("Step duration requires a value")
        return cls(
            type=_parse_enum(StepType, d.get("type"), "step type"),
            duration=Duration(
                type=_parse_enum(DurationType, duration.get("type"), "duration type"),
                value=duration["value"],
            ),
            primary_target=PrimaryTarget.from_dict(d["primaryTarget"]) if d.get("primaryTarget") else None,
            cadence_target=CadenceTarget.from_dict(d["cadenceTarget"]) if d.get("cadenceTarget") else None,
            note=d.get("note") or None,
        )


@dataclass
class RepeatBlock:
    """`count` consecutive repetitions of `steps`."""
    count: int
    steps: List[Step]

    @classmethod
    def from_dict(cls, d: dict) -> "RepeatBlock":
        count = d.get("repeat", d.get("count"))
        if not isinstance(count, int) or isinstance(count, bool) or count < 1:
            raise MalformedPrescription(f"Repeat count must be a positive integer, got {count!r}")
        return cls(count=count, steps=[Step.from_dict(s) for s in d.get("steps") or []])


Block = Union[Step, RepeatBlock]


@dataclass
class Prescription:
    sport: Sport
    blocks: List[Block]
    objective: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Prescription":
        """Parse the stored prescription JSON.

        Blocks with a `repeat` (or `count`) key are repeat blocks.

        Raises:
            MalformedPrescription: On unknown enum values or missing fields.
        """
        if not isinstance(d, dict):
            raise MalformedPrescription("Prescription must be an object")
        return cls(
            sport=_parse_enum(Sport, d.get("sport"), "sport"),
            blocks=[_parse_block(b) for b in d.get("steps") or []],
            objective=d.get("objective") or None,
            notes=d.get("notes") or None,
        )


def _parse_block(d) -> Block:
    if not isinstance(d, dict):
        raise MalformedPrescription("Each step must be an object")
    if "repeat" in d or "count" in d:
        return RepeatBlock.from_dict(d)
    return Step.from_dict(d)


def _parse_enum(enum_cls, value, label: str):
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise MalformedPrescription(f"Invalid {label} '{value}'. Must be one of: {choices}")
