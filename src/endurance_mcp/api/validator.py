"""
Normalized workout validation.

Runs after normalization and before conversion. Each rule has its own
failure reason. Never mutates the workout.
"""

from endurance_mcp.errors import ValidationError
from endurance_mcp.sdk.types import CADENCE_SPORT, ZONE_MAX, ZONE_MIN


def validate(workout: dict) -> None:
    """Validate a normalized workout.

    Raises:
        ValidationError: With the reason of the first rule that fails.
    """
    steps = workout.get("steps") or []
    if not steps:
        raise ValidationError("Workout must have at least one step")

    for step in steps:
        _validate_duration(step)
        if step.get("primaryTarget") is not None:
            _validate_primary_target(step)

    # Sport-wide rule: cadence targets only exist on bike computers
    if workout.get("sport") != CADENCE_SPORT.value:
        if any(step.get("cadenceTarget") for step in steps):
            raise ValidationError(
                f"Cadence target is only allowed for {CADENCE_SPORT.value} workouts"
            )


def _validate_duration(step: dict) -> None:
    duration = step.get("duration") or {}
    seconds = duration.get("seconds")
    meters = duration.get("meters")
    label = step.get("type", "UNKNOWN")

    if seconds is None and meters is None:
        raise ValidationError(f'Step "{label}" must have duration (seconds or meters)')
    if seconds is not None and meters is not None:
        raise ValidationError(f'Step "{label}" must have duration in seconds or meters, not both')

    value = seconds if seconds is not None else meters
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
        raise ValidationError(f'Step "{label}" duration must be greater than 0')


def _validate_primary_target(step: dict) -> None:
    target = step["primaryTarget"]
    label = step.get("type", "UNKNOWN")
    has_zone = target.get("zone") is not None
    has_min = target.get("min") is not None
    has_max = target.get("max") is not None

    if has_zone and (has_min or has_max):
        raise ValidationError(
            f'Step "{label}" primary target must have zone OR min/max range, not both'
        )
    if has_zone:
        zone = target["zone"]
        if not isinstance(zone, int) or isinstance(zone, bool) or not ZONE_MIN <= zone <= ZONE_MAX:
            raise ValidationError(
                f'Step "{label}" primary target zone must be between {ZONE_MIN} and {ZONE_MAX}'
            )
        return
    if has_min != has_max:
        raise ValidationError(
            f'Step "{label}" primary target requires both min and max when zone is absent'
        )
    if not has_min:
        raise ValidationError(
            f'Step "{label}" primary target must have zone OR min/max range'
        )
