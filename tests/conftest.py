"""
Shared pytest fixtures for endurance export MCP testing.
"""
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import Mock, patch

from mcp.server.fastmcp import FastMCP

from endurance_mcp.api.export import ExportOrchestrator
from endurance_mcp.api.oauth_state import OAuthStateStore
from endurance_mcp.api.vault import TokenVault
from endurance_mcp.config import AppConfig
from endurance_mcp.sdk.client import TokenGrant
from endurance_mcp.sdk.types import Provider, SessionType
from endurance_mcp.service_factory import Services
from endurance_mcp.store import ConnectionStore, SessionStore, TrainingSession

TEST_KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
ATHLETE_ID = "athlete-1"


def get_tool_result_text(result):
    """Extract text from tool result.

    FastMCP call_tool returns a tuple (list_of_TextContent, metadata_dict).
    This helper extracts the text from the first TextContent item.
    """
    if isinstance(result, tuple) and len(result) > 0:
        result = result[0]
    if isinstance(result, list) and len(result) > 0:
        if hasattr(result[0], 'text'):
            return result[0].text
    return str(result)


def create_test_app(module):
    """Helper to create a FastMCP app with a specific module registered."""
    app = FastMCP(f"Test Endurance {module.__name__}")
    app = module.register_tools(app)
    return app


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class ImmediateExecutor(Executor):
    """Runs submitted work inline so background exports finish before asserts."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def provider_settings(provider: Provider) -> dict:
    prefix = provider.value.lower()
    return {
        "client_id": f"{prefix}-client-id",
        "client_secret": f"{prefix}-client-secret",
        "redirect_uri": f"https://app.example.com/api/athlete/{prefix}/callback",
        "auth_url": f"https://auth.{prefix}.example.com/oauth/authorize",
        "token_url": f"https://auth.{prefix}.example.com/oauth/token",
        "api_base_url": f"https://api.{prefix}.example.com",
        "token_encryption_key": TEST_KEY,
    }


def make_config(data_dir, dev_mode=False) -> AppConfig:
    providers = {} if dev_mode else {p: provider_settings(p) for p in Provider}
    return AppConfig(data_dir=data_dir, dev_mode_oauth=dev_mode, providers=providers)


def interval_prescription():
    """Bike session: warmup, 4 x (work + recovery), cooldown."""
    return {
        "sport": "BIKE",
        "objective": "VO2 max intervals",
        "steps": [
            {
                "type": "WARMUP",
                "duration": {"type": "TIME", "value": 600},
                "primaryTarget": {"kind": "POWER", "unit": "WATTS", "zone": 2},
            },
            {
                "repeat": 4,
                "steps": [
                    {
                        "type": "WORK",
                        "duration": {"type": "TIME", "value": 240},
                        "primaryTarget": {"kind": "POWER", "minWatts": 250, "maxWatts": 280},
                        "cadenceTarget": {"minRpm": 90, "maxRpm": 100},
                    },
                    {
                        "type": "RECOVERY",
                        "duration": {"type": "TIME", "value": 120},
                        "primaryTarget": {"kind": "POWER", "zone": 1},
                    },
                ],
            },
            {
                "type": "COOLDOWN",
                "duration": {"type": "TIME", "value": 300},
            },
        ],
    }


def make_session(
    session_id="session-1",
    athlete_id=ATHLETE_ID,
    session_type=SessionType.ENDURANCE,
    prescription=None,
    **export_fields,
) -> TrainingSession:
    return TrainingSession(
        id=session_id,
        athlete_id=athlete_id,
        type=session_type,
        prescription=interval_prescription() if prescription is None else prescription,
        title="Tuesday intervals",
        date="2026-03-03",
        **export_fields,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app_config(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def session_store(tmp_path):
    return SessionStore(tmp_path)


@pytest.fixture
def connection_store(tmp_path):
    return ConnectionStore(tmp_path)


@pytest.fixture
def provider_client():
    """Mock ProviderClient shared by every provider."""
    client = Mock()
    client.create_workout = Mock(return_value="ext-123")
    client.exchange_code = Mock(return_value=TokenGrant("access-1", "refresh-1", 3600))
    client.refresh = Mock(return_value=TokenGrant("access-2", "refresh-2", 3600))
    return client


@pytest.fixture
def client_for(provider_client):
    return Mock(return_value=provider_client)


@pytest.fixture
def vault(app_config, connection_store, client_for, clock):
    return TokenVault(app_config, connection_store, client_for, clock=clock)


@pytest.fixture
def oauth_states(clock):
    return OAuthStateStore(clock=clock)


@pytest.fixture
def orchestrator(session_store, connection_store, vault, client_for, clock):
    return ExportOrchestrator(
        session_store,
        connection_store,
        vault,
        client_for,
        executor=ImmediateExecutor(),
        clock=clock,
    )


@pytest.fixture
def services(app_config, session_store, connection_store, vault, oauth_states, orchestrator):
    return Services(
        config=app_config,
        sessions=session_store,
        connections=connection_store,
        vault=vault,
        states=oauth_states,
        orchestrator=orchestrator,
    )


@pytest.fixture(autouse=True)
def mock_get_services(services):
    """Auto-mock service_factory.get_services in all tool modules.

    Yields the mock function so tests can inspect or replace the services.
    """
    get_services_fn = Mock(return_value=services)

    modules_to_patch = [
        "endurance_mcp.devices",
        "endurance_mcp.exports",
    ]

    patchers = []
    for module in modules_to_patch:
        p = patch(f"{module}.get_services", get_services_fn)
        p.start()
        patchers.append(p)

    yield get_services_fn

    for p in patchers:
        p.stop()
