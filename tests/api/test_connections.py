"""Tests for api/connections.py: OAuth handshake and primary selection."""

from urllib.parse import parse_qs, urlparse

import pytest

from endurance_mcp.api.connections import (
    complete_connection,
    initiate_connection,
    list_connections,
    set_primary_provider,
)
from endurance_mcp.errors import NotConnected, OAuthStateError
from endurance_mcp.sdk.types import ConnectionStatus, ExportStatus, Provider
from tests.conftest import ATHLETE_ID, make_session


def test_initiate_connection(vault, oauth_states):
    result = initiate_connection(vault, oauth_states, Provider.GARMIN, ATHLETE_ID)

    assert result["provider"] == "GARMIN"
    assert result["mock"] is False
    assert parse_qs(urlparse(result["url"]).query)["state"] == [result["state"]]
    assert len(oauth_states) == 1


class TestCompleteConnection:
    def test_stores_connection_and_pushes_pending(
        self, vault, oauth_states, orchestrator, session_store, connection_store,
    ):
        session_store.save(make_session("s-1", export_status=ExportStatus.NOT_CONNECTED))
        state = initiate_connection(vault, oauth_states, Provider.WAHOO, ATHLETE_ID)["state"]

        result = complete_connection(
            vault, oauth_states, orchestrator, Provider.WAHOO, state, "auth-code", ATHLETE_ID,
        )

        assert result["success"] is True
        assert result["provider"] == "WAHOO"
        assert result["status"] == "CONNECTED"
        assert result["pendingWorkoutsQueued"] == 1
        assert connection_store.get(ATHLETE_ID, Provider.WAHOO) is not None
        assert session_store.get("s-1").export_status == ExportStatus.SENT
        assert session_store.get("s-1").export_provider == Provider.WAHOO

    def test_state_is_single_use(self, vault, oauth_states, orchestrator):
        state = initiate_connection(vault, oauth_states, Provider.GARMIN, ATHLETE_ID)["state"]
        complete_connection(vault, oauth_states, orchestrator, Provider.GARMIN, state, "c", ATHLETE_ID)

        with pytest.raises(OAuthStateError):
            complete_connection(vault, oauth_states, orchestrator, Provider.GARMIN, state, "c", ATHLETE_ID)

    def test_bad_state_stores_nothing(self, vault, oauth_states, orchestrator, connection_store, provider_client):
        with pytest.raises(OAuthStateError):
            complete_connection(vault, oauth_states, orchestrator, Provider.GARMIN, "forged", "c", ATHLETE_ID)

        provider_client.exchange_code.assert_not_called()
        assert connection_store.get(ATHLETE_ID, Provider.GARMIN) is None

    def test_state_for_other_athlete(self, vault, oauth_states, orchestrator):
        state = initiate_connection(vault, oauth_states, Provider.GARMIN, "athlete-2")["state"]
        with pytest.raises(OAuthStateError, match="mismatch"):
            complete_connection(vault, oauth_states, orchestrator, Provider.GARMIN, state, "c", ATHLETE_ID)


class TestListConnections:
    def test_empty(self, connection_store):
        assert list_connections(connection_store, ATHLETE_ID) == []

    def test_primary_first(self, vault, connection_store):
        vault.exchange_code(Provider.GARMIN, "code", ATHLETE_ID)
        vault.exchange_code(Provider.WAHOO, "code", ATHLETE_ID)
        set_primary_provider(connection_store, ATHLETE_ID, Provider.GARMIN)

        result = list_connections(connection_store, ATHLETE_ID)

        assert [c["provider"] for c in result] == ["GARMIN", "WAHOO"]
        assert result[0]["isPrimary"] is True
        assert result[1]["isPrimary"] is False
        assert result[0]["status"] == "CONNECTED"
        assert "accessToken" not in result[0]


class TestSetPrimaryProvider:
    def test_only_one_primary(self, vault, connection_store):
        vault.exchange_code(Provider.GARMIN, "code", ATHLETE_ID)
        vault.exchange_code(Provider.WAHOO, "code", ATHLETE_ID)

        set_primary_provider(connection_store, ATHLETE_ID, Provider.GARMIN)
        result = set_primary_provider(connection_store, ATHLETE_ID, Provider.WAHOO)

        assert result == {"message": "WAHOO set as primary provider", "provider": "WAHOO"}
        assert connection_store.get(ATHLETE_ID, Provider.WAHOO).is_primary is True
        assert connection_store.get(ATHLETE_ID, Provider.GARMIN).is_primary is False

    def test_requires_connection(self, connection_store):
        with pytest.raises(NotConnected, match="GARMIN is not connected"):
            set_primary_provider(connection_store, ATHLETE_ID, Provider.GARMIN)

    def test_requires_connected_status(self, vault, connection_store):
        vault.exchange_code(Provider.GARMIN, "code", ATHLETE_ID)
        connection_store.update_status(ATHLETE_ID, Provider.GARMIN, ConnectionStatus.EXPIRED)

        with pytest.raises(NotConnected):
            set_primary_provider(connection_store, ATHLETE_ID, Provider.GARMIN)
