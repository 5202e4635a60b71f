"""
Provider exporters, selected by provider identifier.

Each provider owns its payload layout; they share no code and never
reference each other's field names.
"""

from endurance_mcp.api.exporters.base import ExportPayload, WorkoutExporter
from endurance_mcp.api.exporters.garmin import GarminExporter
from endurance_mcp.api.exporters.wahoo import WahooExporter
from endurance_mcp.errors import UnsupportedProvider
from endurance_mcp.sdk.types import Provider

EXPORTERS = {
    Provider.GARMIN: GarminExporter(),
    Provider.WAHOO: WahooExporter(),
}


def get_exporter(provider: Provider, exporters: dict = None) -> WorkoutExporter:
    registry = EXPORTERS if exporters is None else exporters
    exporter = registry.get(provider)
    if exporter is None:
        raise UnsupportedProvider(f"Unsupported provider: {getattr(provider, 'value', provider)}")
    return exporter


def convert(workout: dict, provider: Provider) -> ExportPayload:
    """Build the provider payload for a validated workout."""
    return get_exporter(provider).build(workout)


__all__ = [
    "EXPORTERS",
    "ExportPayload",
    "WorkoutExporter",
    "GarminExporter",
    "WahooExporter",
    "get_exporter",
    "convert",
]
