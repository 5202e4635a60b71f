"""
Device connection operations: OAuth handshake and primary selection.

Composes the OAuth state store, the token vault, and the export
orchestrator. Each function returns a clean dict.
"""

import logging

from endurance_mcp.api.export import ExportOrchestrator
from endurance_mcp.api.oauth_state import OAuthStateStore
from endurance_mcp.api.vault import TokenVault
from endurance_mcp.errors import NotConnected
from endurance_mcp.sdk.types import ConnectionStatus, Provider
from endurance_mcp.store import ConnectionStore

logger = logging.getLogger(__name__)


def initiate_connection(
    vault: TokenVault,
    states: OAuthStateStore,
    provider: Provider,
    athlete_id: str,
) -> dict:
    """Issue a state token and build the provider's authorization URL."""
    state = states.issue(provider, athlete_id)
    return {
        "provider": provider.value,
        "url": vault.authorization_url(provider, state),
        "state": state,
        "mock": vault.mock_mode,
    }


def complete_connection(
    vault: TokenVault,
    states: OAuthStateStore,
    orchestrator: ExportOrchestrator,
    provider: Provider,
    state: str,
    code: str,
    athlete_id: str,
) -> dict:
    """OAuth callback: consume the state, store tokens, push waiting workouts.

    Raises:
        OAuthStateError: If the state was not issued for this athlete and
            provider, has expired, or was already used.
    """
    states.consume(state, provider, athlete_id)
    connection = vault.exchange_code(provider, code, athlete_id)

    pending = orchestrator.push_pending_workouts(athlete_id, provider)

    return {
        "success": True,
        "provider": provider.value,
        "status": connection.status.value,
        "connectedAt": connection.connected_at.isoformat(),
        "pendingWorkoutsQueued": len(pending),
    }


def list_connections(connections: ConnectionStore, athlete_id: str) -> list:
    """All connections for an athlete, primary first, then newest."""
    return [
        {
            "provider": c.provider.value,
            "status": c.status.value,
            "connectedAt": c.connected_at.isoformat(),
            "isPrimary": c.is_primary,
        }
        for c in connections.list_for_athlete(athlete_id)
    ]


def set_primary_provider(connections: ConnectionStore, athlete_id: str, provider: Provider) -> dict:
    """Make a CONNECTED provider the athlete's only primary.

    Raises:
        NotConnected: If the provider is not connected for this athlete.
    """
    connection = connections.get(athlete_id, provider)
    if connection is None or connection.status != ConnectionStatus.CONNECTED:
        raise NotConnected(f"{provider.value} is not connected")

    connections.set_primary(athlete_id, provider)
    logger.info(f"{provider.value} set as primary provider for athlete {athlete_id}")
    return {
        "message": f"{provider.value} set as primary provider",
        "provider": provider.value,
    }
