"""
Device connection tools for the endurance export MCP server.

Connect a fitness-device provider via OAuth, list connections, and pick
the primary provider workouts are pushed to.
"""

import json
import logging

from endurance_mcp.api import connections as api_connections
from endurance_mcp.errors import ExportError
from endurance_mcp.sdk.types import parse_provider
from endurance_mcp.service_factory import get_services

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def register_tools(app):
    """Register device connection tools with the MCP app."""

    @app.tool()
    async def connect_device(athlete_id: str, provider: str) -> str:
        """
        Start connecting a device provider for an athlete.

        Returns the authorization URL the athlete must open. The returned
        state is valid for 10 minutes and can be used once.

        Args:
            athlete_id: Athlete user id
            provider: "garmin" or "wahoo"

        Returns:
            JSON with the authorization url and state
        """
        try:
            services = get_services()
            result = api_connections.initiate_connection(
                services.vault, services.states, parse_provider(provider), athlete_id,
            )
            return json.dumps({"success": True, **result}, indent=2)
        except ExportError as e:
            logger.error(f"Error initiating {provider} connection: {e.message}")
            return json.dumps(e.to_dict(), indent=2)

    @app.tool()
    async def complete_device_connection(
        athlete_id: str, provider: str, state: str, code: str,
    ) -> str:
        """
        Finish a device connection with the provider's OAuth callback values.

        Stores the athlete's tokens encrypted and queues every workout that
        was waiting for a connected device.

        Args:
            athlete_id: Athlete user id
            provider: "garmin" or "wahoo"
            state: The state returned by connect_device
            code: Authorization code from the provider callback

        Returns:
            JSON with the connection status and number of queued workouts
        """
        try:
            services = get_services()
            result = api_connections.complete_connection(
                services.vault,
                services.states,
                services.orchestrator,
                parse_provider(provider),
                state,
                code,
                athlete_id,
            )
            return json.dumps(result, indent=2)
        except ExportError as e:
            logger.error(f"Error handling {provider} callback: {e.message}")
            return json.dumps(e.to_dict(), indent=2)

    @app.tool()
    async def list_device_connections(athlete_id: str) -> str:
        """
        List an athlete's device connections.

        Args:
            athlete_id: Athlete user id

        Returns:
            JSON list of {provider, status, connectedAt, isPrimary}, primary first
        """
        services = get_services()
        connections = api_connections.list_connections(services.connections, athlete_id)
        return json.dumps({"connections": connections, "count": len(connections)}, indent=2)

    @app.tool()
    async def set_primary_device(athlete_id: str, provider: str) -> str:
        """
        Choose which connected provider receives the athlete's workouts.

        Args:
            athlete_id: Athlete user id
            provider: "garmin" or "wahoo" (must be connected)

        Returns:
            JSON confirmation
        """
        try:
            services = get_services()
            result = api_connections.set_primary_provider(
                services.connections, athlete_id, parse_provider(provider),
            )
            return json.dumps({"success": True, **result}, indent=2)
        except ExportError as e:
            return json.dumps(e.to_dict(), indent=2)

    return app
