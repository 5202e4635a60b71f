"""
Garmin draft payload.

Every step carries a `targets` object keyed by role (primary, cadence).
Draft layout, never submitted as a certified Garmin workout.
"""

EXPORT_VERSION = "draft-v1"


class GarminExporter:
    def build(self, workout: dict) -> dict:
        payload = {
            "platform": "GARMIN",
            "sport": workout["sport"],
            "steps": [self._build_step(step) for step in workout.get("steps", [])],
            "exportVersion": EXPORT_VERSION,
        }
        if workout.get("objective"):
            payload["objective"] = workout["objective"]
        if workout.get("notes"):
            payload["notes"] = workout["notes"]
        return payload

    @staticmethod
    def _build_step(step: dict) -> dict:
        targets = {}
        primary = step.get("primaryTarget")
        if primary:
            targets["primary"] = {
                key: primary[key]
                for key in ("kind", "unit", "zone", "min", "max")
                if primary.get(key) is not None
            }
        cadence = step.get("cadenceTarget")
        if cadence:
            targets["cadence"] = {"minRpm": cadence["minRpm"], "maxRpm": cadence["maxRpm"]}

        result = {
            "type": step["type"],
            "duration": dict(step["duration"]),
            "targets": targets,
        }
        if step.get("note"):
            result["note"] = step["note"]
        return result
