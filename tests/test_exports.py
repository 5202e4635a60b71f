"""
Tests for endurance MCP workout export tools.
"""

import json

import pytest

from endurance_mcp import exports
from endurance_mcp.errors import ProviderRejected
from endurance_mcp.sdk.types import ExportStatus, Provider, SessionType
from tests.conftest import ATHLETE_ID, create_test_app, get_tool_result_text, make_session


@pytest.fixture
def app_with_exports():
    return create_test_app(exports)


async def _call(app, name, arguments):
    result = await app.call_tool(name, arguments)
    return json.loads(get_tool_result_text(result))


# ── preview_workout ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_preview_workout(app_with_exports, session_store, provider_client):
    session_store.save(make_session())

    data = await _call(app_with_exports, "preview_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert len(data["workout"]["steps"]) == 10
    assert data["summary"]["total_duration"] == "39m00s"
    assert data["summary"]["primary_target"] == "POWER zone 2"
    provider_client.create_workout.assert_not_called()
    assert session_store.get("session-1").export_status is None


@pytest.mark.asyncio
async def test_preview_strength_session(app_with_exports, session_store):
    session_store.save(make_session(session_type=SessionType.STRENGTH, prescription={}))

    data = await _call(app_with_exports, "preview_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["success"] is False
    assert data["error_code"] == "NOT_EXPORTABLE"


# ── export_workout ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_export_workout_to_primary(app_with_exports, session_store, vault, connection_store):
    session_store.save(make_session())
    vault.exchange_code(Provider.GARMIN, "code", ATHLETE_ID)
    vault.exchange_code(Provider.WAHOO, "code", ATHLETE_ID)
    connection_store.set_primary(ATHLETE_ID, Provider.GARMIN)

    data = await _call(app_with_exports, "export_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["success"] is True
    assert data["exportStatus"] == "SENT"
    assert data["exportProvider"] == "GARMIN"
    assert data["externalWorkoutId"] == "ext-123"


@pytest.mark.asyncio
async def test_export_workout_explicit_provider(app_with_exports, session_store, vault):
    session_store.save(make_session())
    vault.exchange_code(Provider.WAHOO, "code", ATHLETE_ID)

    data = await _call(app_with_exports, "export_workout", {
        "athlete_id": ATHLETE_ID, "session_id": "session-1", "provider": "wahoo",
    })

    assert data["exportProvider"] == "WAHOO"


@pytest.mark.asyncio
async def test_export_workout_without_device(app_with_exports, session_store):
    session_store.save(make_session())

    data = await _call(app_with_exports, "export_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["success"] is False
    assert data["error_code"] == "NOT_CONNECTED"
    assert session_store.get("session-1").export_status is None


@pytest.mark.asyncio
async def test_export_workout_rejected(app_with_exports, session_store, vault, provider_client):
    session_store.save(make_session())
    vault.exchange_code(Provider.GARMIN, "code", ATHLETE_ID)
    provider_client.create_workout.side_effect = ProviderRejected(
        "GARMIN authentication failed. Please reconnect your account.", status_code=401,
    )

    data = await _call(app_with_exports, "export_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["success"] is False
    assert data["reconnect_required"] is True
    assert data["exportStatus"] == "FAILED"
    assert data["lastExportError"] == "GARMIN authentication failed. Please reconnect your account."


@pytest.mark.asyncio
async def test_export_other_athletes_session(app_with_exports, session_store):
    session_store.save(make_session(athlete_id="athlete-2"))

    data = await _call(app_with_exports, "export_workout", {
        "athlete_id": ATHLETE_ID, "session_id": "session-1", "provider": "garmin",
    })

    assert data["error_code"] == "OWNERSHIP_MISMATCH"
    assert "exportStatus" not in data


# ── auto_push_workout ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_auto_push_without_device(app_with_exports, session_store):
    session_store.save(make_session())

    data = await _call(app_with_exports, "auto_push_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["queued"] is False
    assert data["exportStatus"] == "NOT_CONNECTED"


@pytest.mark.asyncio
async def test_auto_push_with_device(app_with_exports, session_store, vault):
    session_store.save(make_session())
    vault.exchange_code(Provider.WAHOO, "code", ATHLETE_ID)

    data = await _call(app_with_exports, "auto_push_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["queued"] is True
    assert session_store.get("session-1").export_status == ExportStatus.SENT


@pytest.mark.asyncio
async def test_auto_push_other_athletes_session(app_with_exports, session_store):
    session_store.save(make_session(athlete_id="athlete-2", export_status=ExportStatus.SENT, external_workout_id="ext-9"))

    data = await _call(app_with_exports, "auto_push_workout", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["queued"] is False
    assert data["error_code"] == "OWNERSHIP_MISMATCH"
    assert "externalWorkoutId" not in data
    assert session_store.get("session-1").export_status == ExportStatus.SENT


# ── get_export_status ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_export_status(app_with_exports, session_store):
    session_store.save(make_session(export_status=ExportStatus.FAILED, last_export_error="Invalid workout format for WAHOO"))

    data = await _call(app_with_exports, "get_export_status", {"athlete_id": ATHLETE_ID, "session_id": "session-1"})

    assert data["sessionId"] == "session-1"
    assert data["exportStatus"] == "FAILED"
    assert data["lastExportError"] == "Invalid workout format for WAHOO"


@pytest.mark.asyncio
async def test_get_export_status_missing(app_with_exports):
    data = await _call(app_with_exports, "get_export_status", {"athlete_id": ATHLETE_ID, "session_id": "nope"})

    assert data["error_code"] == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_available_features(app_with_exports):
    data = await _call(app_with_exports, "get_available_features", {})

    assert data["providers"] == ["garmin", "wahoo"]
    assert any("export_workout" in line for line in data["exports"])
