"""
Prescription normalization.

Flattens a nested prescription (steps + repeat blocks, per-kind target
field names) into the canonical workout every exporter consumes:

    {sport, objective?, notes?, steps: [{type, duration: {seconds|meters},
     primaryTarget?: {kind, unit, zone | min & max},
     cadenceTarget?: {minRpm, maxRpm}, note?}]}

Pure and deterministic. Sport-level rules (cadence only on BIKE) are left
to the validator so legacy prescriptions can still be normalized and shown.
"""

import copy

from endurance_mcp.api.model import (
    CadenceTarget,
    Prescription,
    PrimaryTarget,
    RepeatBlock,
    Step,
)
from endurance_mcp.errors import MalformedTarget
from endurance_mcp.sdk.types import DurationType, TARGET_RANGE_FIELDS


def normalize(prescription) -> dict:
    """Normalize a prescription (Prescription or its stored dict form).

    Repeat blocks expand to `count` consecutive copies of their steps:
    all steps of repetition 1, then repetition 2, and so on.

    Raises:
        MalformedPrescription: If the prescription cannot be parsed.
        MalformedTarget: If a primary target has neither a zone nor a
            complete min/max pair.
    """
    if not isinstance(prescription, Prescription):
        prescription = Prescription.from_dict(prescription)

    steps = []
    for block in prescription.blocks:
        if isinstance(block, RepeatBlock):
            inner = [normalize_step(s) for s in block.steps]
            for _ in range(block.count):
                steps.extend(copy.deepcopy(inner))
        else:
            steps.append(normalize_step(block))

    workout = {"sport": prescription.sport.value, "steps": steps}
    if prescription.objective:
        workout["objective"] = prescription.objective
    if prescription.notes:
        workout["notes"] = prescription.notes
    return workout


def normalize_step(step: Step) -> dict:
    if step.duration.type == DurationType.TIME:
        duration = {"seconds": step.duration.value}
    else:
        duration = {"meters": step.duration.value}

    result = {"type": step.type.value, "duration": duration}
    if step.primary_target:
        result["primaryTarget"] = normalize_primary_target(step.primary_target)
    if step.cadence_target:
        result["cadenceTarget"] = _normalize_cadence(step.cadence_target)
    if step.note:
        result["note"] = step.note
    return result


def normalize_primary_target(target: PrimaryTarget) -> dict:
    """Zone wins when present; otherwise the kind's min/max pair is required."""
    if target.zone is not None:
        return {"kind": target.kind.value, "unit": target.unit.value, "zone": target.zone}

    min_field, max_field = TARGET_RANGE_FIELDS[target.kind]
    low = target.ranges.get(min_field)
    high = target.ranges.get(max_field)
    if low is None or high is None:
        raise MalformedTarget("Primary target requires both min and max when zone is absent")

    return {"kind": target.kind.value, "unit": target.unit.value, "min": low, "max": high}


def _normalize_cadence(target: CadenceTarget) -> dict:
    return {"minRpm": target.min_rpm, "maxRpm": target.max_rpm}
