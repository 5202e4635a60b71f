"""
Service factory for the endurance export MCP server.

Builds the process-wide pipeline once from the environment:
record stores, token vault, OAuth state store, and export orchestrator.

The OAuth state store lives in this process's memory. In a horizontally
scaled deployment the callback must hit the process that issued the
state, or the store must move to a shared TTL cache.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import requests

from endurance_mcp.api.export import ExportOrchestrator
from endurance_mcp.api.oauth_state import OAuthStateStore
from endurance_mcp.api.vault import TokenVault
from endurance_mcp.config import AppConfig
from endurance_mcp.sdk.client import ProviderClient
from endurance_mcp.sdk.types import Provider
from endurance_mcp.store import ConnectionStore, SessionStore


@dataclass
class Services:
    config: AppConfig
    sessions: SessionStore
    connections: ConnectionStore
    vault: TokenVault
    states: OAuthStateStore
    orchestrator: ExportOrchestrator


_services: Optional[Services] = None
_lock = threading.Lock()


def build_services(config: AppConfig, http: requests.Session = None) -> Services:
    """Wire the pipeline for a given configuration."""
    http = http or requests.Session()

    def client_for(provider: Provider) -> ProviderClient:
        return ProviderClient(
            config.provider_config(provider),
            session=http,
            timeout=config.http_timeout,
        )

    sessions = SessionStore(config.data_dir)
    connections = ConnectionStore(config.data_dir)
    vault = TokenVault(config, connections, client_for)
    orchestrator = ExportOrchestrator(
        sessions,
        connections,
        vault,
        client_for,
        executor=ThreadPoolExecutor(
            max_workers=config.export_workers, thread_name_prefix="endurance-export",
        ),
        max_concurrency_per_provider=config.max_concurrency_per_provider,
    )
    return Services(
        config=config,
        sessions=sessions,
        connections=connections,
        vault=vault,
        states=OAuthStateStore(),
        orchestrator=orchestrator,
    )


def get_services() -> Services:
    """
    Get the process-wide services, building them on first use.

    Usage in tools:
        @app.tool()
        async def export_workout(...) -> str:
            services = get_services()
            services.orchestrator.export_workout_to_provider(...)
    """
    global _services
    with _lock:
        if _services is None:
            _services = build_services(AppConfig.from_env())
        return _services


def reset_services() -> None:
    """Drop the cached services, waiting for in-flight background exports."""
    global _services
    with _lock:
        if _services is not None:
            _services.orchestrator.shutdown(wait=True)
        _services = None
