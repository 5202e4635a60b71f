"""
Tests for the process-wide service wiring.
"""

import pytest

from endurance_mcp import service_factory
from endurance_mcp.api.export import ExportOrchestrator
from endurance_mcp.service_factory import build_services, get_services, reset_services
from tests.conftest import make_config


@pytest.fixture(autouse=True)
def clean_services():
    reset_services()
    yield
    reset_services()


def test_build_services_shares_data_dir(tmp_path):
    services = build_services(make_config(tmp_path))
    try:
        assert isinstance(services.orchestrator, ExportOrchestrator)
        assert services.vault.mock_mode is False
        assert len(services.states) == 0
    finally:
        services.orchestrator.shutdown()


def test_get_services_is_cached(tmp_path, monkeypatch):
    monkeypatch.setenv("ENDURANCE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DEV_MODE_OAUTH", "true")

    first = get_services()

    assert get_services() is first
    assert first.config.data_dir == tmp_path
    assert first.vault.mock_mode is True


def test_reset_services(tmp_path, monkeypatch):
    monkeypatch.setenv("ENDURANCE_DATA_DIR", str(tmp_path))
    first = get_services()

    reset_services()

    assert service_factory._services is None
    assert get_services() is not first
