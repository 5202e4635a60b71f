"""
Workout export tools for the endurance export MCP server.

Preview the canonical workout, export it to a device provider, and read
the persisted export status.
"""

import json
import logging

from endurance_mcp.api.preview import summarize
from endurance_mcp.errors import ExportError, NotConnected
from endurance_mcp.sdk.types import parse_provider
from endurance_mcp.service_factory import get_services

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def register_tools(app):
    """Register workout export tools with the MCP app."""

    @app.tool()
    async def preview_workout(athlete_id: str, session_id: str) -> str:
        """
        Show the normalized workout for an endurance session.

        Repeat blocks are expanded and targets resolved to one encoding.
        Nothing is sent to a device.

        Args:
            athlete_id: Athlete the session belongs to
            session_id: Training session id

        Returns:
            JSON with the canonical workout and a summary (totals, headline target)
        """
        try:
            workout = get_services().orchestrator.get_normalized_workout(session_id, athlete_id)
            return json.dumps({"workout": workout, "summary": summarize(workout)}, indent=2)
        except ExportError as e:
            return json.dumps(e.to_dict(), indent=2)

    @app.tool()
    async def export_workout(athlete_id: str, session_id: str, provider: str = None) -> str:
        """
        Export an endurance session to the athlete's device provider now.

        Args:
            athlete_id: Athlete the session belongs to
            session_id: Training session id
            provider: "garmin" or "wahoo" (default: the athlete's primary,
                else most recently connected provider)

        Returns:
            JSON with the resulting export status and external workout id
        """
        services = get_services()
        try:
            if provider:
                target = parse_provider(provider)
            else:
                target = services.orchestrator.select_provider(athlete_id)
                if target is None:
                    raise NotConnected("No connected device. Connect Garmin or Wahoo first.")

            session = services.orchestrator.export_workout_to_provider(session_id, athlete_id, target)
            return json.dumps({"success": True, "sessionId": session_id, **session.export_state()}, indent=2)
        except ExportError as e:
            result = e.to_dict()
            session = services.sessions.get(session_id)
            if session is not None and session.athlete_id == athlete_id:
                result.update(session.export_state())
            return json.dumps(result, indent=2)

    @app.tool()
    async def auto_push_workout(athlete_id: str, session_id: str) -> str:
        """
        Queue a saved endurance session for delivery to the athlete's device.

        Called after a coach creates or updates an endurance session. Never
        fails the caller: without a connected device the session is marked
        NOT_CONNECTED and is pushed once the athlete connects one.

        Args:
            athlete_id: Athlete the session belongs to
            session_id: Training session id

        Returns:
            JSON with whether an export was queued
        """
        services = get_services()
        future = services.orchestrator.auto_push_endurance_workout(session_id, athlete_id)
        result = {"sessionId": session_id, "queued": future is not None}
        if future is None:
            try:
                result.update(services.orchestrator.get_export_state(session_id, athlete_id))
            except ExportError as e:
                result.update(e.to_dict())
        return json.dumps(result, indent=2)

    @app.tool()
    async def get_export_status(athlete_id: str, session_id: str) -> str:
        """
        Get the persisted export state of a training session.

        Args:
            athlete_id: Athlete the session belongs to
            session_id: Training session id

        Returns:
            JSON with exportStatus, exportProvider, exportedAt,
            externalWorkoutId, lastExportError
        """
        try:
            state = get_services().orchestrator.get_export_state(session_id, athlete_id)
            return json.dumps(state, indent=2)
        except ExportError as e:
            return json.dumps(e.to_dict(), indent=2)

    @app.tool()
    async def get_available_features() -> str:
        """
        Get list of available endurance export features.

        Returns:
            JSON with available tool categories
        """
        features = {
            "platform": "Endurance workout export",
            "providers": ["garmin", "wahoo"],
            "devices": [
                "connect_device - Start OAuth connection to a provider",
                "complete_device_connection - Finish OAuth with callback state and code",
                "list_device_connections - Connections with status and primary flag",
                "set_primary_device - Choose the provider that receives workouts",
            ],
            "exports": [
                "preview_workout - Normalized workout and totals for a session",
                "export_workout - Send a session to a provider now",
                "auto_push_workout - Queue a saved session for background delivery",
                "get_export_status - Persisted export status of a session",
            ],
            "notes": [
                "Provider payloads are draft layouts, not certified integrations",
                "Failed exports are retried by re-exporting or by reconnecting a device",
            ],
        }
        return json.dumps(features, indent=2)

    return app
