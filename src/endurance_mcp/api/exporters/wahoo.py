"""
Wahoo draft payload.

Workouts are `intervals`; each interval inlines a flat `targets` block
keyed by metric (power, heartRate, pace, cadence) with unit-specific
field names. Stub layout, not a certified Wahoo integration.
"""

EXPORT_VERSION = "wahoo-stub-v1"

# kind → (targets key, min field, max field)
_TARGET_FIELDS = {
    "POWER": ("power", "minWatts", "maxWatts"),
    "HEART_RATE": ("heartRate", "minBpm", "maxBpm"),
    "PACE": ("pace", "minSecPerKm", "maxSecPerKm"),
}


class WahooExporter:
    def build(self, workout: dict) -> dict:
        payload = {
            "platform": "WAHOO",
            "sport": workout["sport"],
            "intervals": [self._build_interval(step) for step in workout.get("steps", [])],
            "exportVersion": EXPORT_VERSION,
        }
        if workout.get("objective"):
            payload["workoutName"] = workout["objective"]
        if workout.get("notes"):
            payload["notes"] = workout["notes"]
        return payload

    @staticmethod
    def _build_interval(step: dict) -> dict:
        interval = {"type": step["type"], "duration": dict(step["duration"])}

        targets = {}
        primary = step.get("primaryTarget")
        if primary:
            key, min_field, max_field = _TARGET_FIELDS[primary["kind"]]
            target = {"unit": primary["unit"]}
            if primary.get("zone") is not None:
                target["zone"] = primary["zone"]
            if primary.get("min") is not None:
                target[min_field] = primary["min"]
            if primary.get("max") is not None:
                target[max_field] = primary["max"]
            targets[key] = target
        cadence = step.get("cadenceTarget")
        if cadence:
            targets["cadence"] = {"minRpm": cadence["minRpm"], "maxRpm": cadence["maxRpm"]}
        if targets:
            interval["targets"] = targets

        if step.get("note"):
            interval["note"] = step["note"]
        return interval
