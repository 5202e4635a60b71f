"""
Human-readable summary of a normalized workout.

Used by the preview tool next to the canonical JSON so a coach can check
totals before anything is sent to a device.
"""

from endurance_mcp.utils import format_distance, format_duration, format_pace


def summarize(workout: dict) -> dict:
    """Totals and headline target for a normalized workout.

    Returns {sport, objective, step_count, total_duration, total_distance,
    primary_target}. Durations and distances are summed separately since a
    workout can mix time- and distance-based steps.
    """
    steps = workout.get("steps", [])
    total_seconds = sum(s["duration"].get("seconds") or 0 for s in steps)
    total_meters = sum(s["duration"].get("meters") or 0 for s in steps)

    headline = next((s["primaryTarget"] for s in steps if s.get("primaryTarget")), None)

    return {
        "sport": workout.get("sport"),
        "objective": workout.get("objective"),
        "step_count": len(steps),
        "total_duration": format_duration(total_seconds) if total_seconds else None,
        "total_distance": format_distance(total_meters) if total_meters else None,
        "primary_target": describe_target(headline) if headline else None,
    }


def describe_target(target: dict) -> str:
    """e.g. "POWER zone 3", "HEART_RATE 140-160 BPM", "PACE 4:00/km-4:30/km"."""
    kind = target["kind"]
    if target.get("zone") is not None:
        return f"{kind} zone {target['zone']}"

    low, high = target.get("min"), target.get("max")
    if target.get("unit") == "SEC_PER_KM":
        return f"{kind} {format_pace(low)}-{format_pace(high)}"
    return f"{kind} {low}-{high} {target.get('unit', '')}".rstrip()
