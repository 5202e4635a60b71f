"""
Exporter capability shared by every provider.

Exporters are pure: build(workout) maps an already-validated normalized
workout to the provider's payload shape. Behaviour on invalid input is
undefined, so callers validate first.
"""

from typing import Any, Dict, Protocol

ExportPayload = Dict[str, Any]


class WorkoutExporter(Protocol):
    def build(self, workout: dict) -> ExportPayload:
        ...
