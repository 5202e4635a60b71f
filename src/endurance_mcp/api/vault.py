"""
Token vault: per-athlete, per-provider OAuth credentials.

Tokens are stored AES-256-GCM encrypted with the provider's key and
refreshed when they are within five minutes of expiry. In dev mode
(DEV_MODE_OAUTH=true) the exchange and refresh are simulated locally.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.parse import urlencode

from endurance_mcp.config import AppConfig
from endurance_mcp.errors import NotConnected, RefreshFailed
from endurance_mcp.sdk.client import ProviderClient, TokenGrant
from endurance_mcp.sdk.crypto import TokenCipher
from endurance_mcp.sdk.types import (
    ConnectionStatus,
    MOCK_TOKEN_LIFETIME_SECONDS,
    OAUTH_SCOPE,
    Provider,
    TOKEN_REFRESH_BUFFER_SECONDS,
)
from endurance_mcp.store import ConnectionStore, DeviceConnection, utcnow

logger = logging.getLogger(__name__)


class TokenVault:
    def __init__(
        self,
        config: AppConfig,
        connections: ConnectionStore,
        client_for: Callable[[Provider], ProviderClient],
        clock: Callable[[], datetime] = utcnow,
    ):
        self._config = config
        self._connections = connections
        self._client_for = client_for
        self._clock = clock

    @property
    def mock_mode(self) -> bool:
        return self._config.dev_mode_oauth

    def authorization_url(self, provider: Provider, state: str) -> str:
        """URL the athlete visits to grant workout access."""
        if self.mock_mode:
            return (
                f"{self._config.athlete_pwa_url}/mock-oauth?"
                f"{urlencode({'provider': provider.value.lower(), 'state': state})}"
            )

        provider_config = self._config.provider_config(provider)
        params = urlencode({
            "client_id": provider_config.client_id,
            "redirect_uri": provider_config.redirect_uri,
            "response_type": "code",
            "scope": OAUTH_SCOPE,
            "state": state,
        })
        return f"{provider_config.auth_url}?{params}"

    def exchange_code(self, provider: Provider, code: str, athlete_id: str) -> DeviceConnection:
        """Exchange an authorization code and store the encrypted token pair."""
        if self.mock_mode:
            logger.info(f"[DEV MODE] Simulating {provider.value} token exchange for athlete {athlete_id}")
            grant = _mock_grant(provider)
        else:
            grant = self._client_for(provider).exchange_code(code)

        connection = self._store(provider, athlete_id, grant.access_token, grant.refresh_token, grant.expires_in)
        logger.info(f"Stored {provider.value} connection for athlete {athlete_id}")
        return connection

    def get_access_token(self, provider: Provider, athlete_id: str) -> Optional[str]:
        """Decrypted access token, refreshed first if it expires within the buffer.

        Returns:
            The token, or None if the athlete has no connection to this provider.
        """
        connection = self._connections.get(athlete_id, provider)
        if connection is None:
            return None

        buffer = timedelta(seconds=TOKEN_REFRESH_BUFFER_SECONDS)
        if self._clock() < connection.expires_at - buffer:
            return self._cipher(provider).decrypt(connection.access_token)

        return self.refresh(provider, athlete_id)

    def refresh(self, provider: Provider, athlete_id: str) -> str:
        """Refresh the access token and store the new pair.

        The old refresh token is kept when the provider does not issue a new one.

        Raises:
            NotConnected: If there is no connection to refresh.
            RefreshFailed: If the provider rejects the refresh token. The
                connection is marked EXPIRED.
        """
        connection = self._connections.get(athlete_id, provider)
        if connection is None:
            raise NotConnected(f"No {provider.value} connection found")

        cipher = self._cipher(provider)
        refresh_token = cipher.decrypt(connection.refresh_token)

        if self.mock_mode:
            logger.info(f"[DEV MODE] Simulating {provider.value} token refresh for athlete {athlete_id}")
            grant = TokenGrant(
                access_token=_mock_token(provider, "access"),
                refresh_token=None,
                expires_in=MOCK_TOKEN_LIFETIME_SECONDS,
            )
        else:
            try:
                grant = self._client_for(provider).refresh(refresh_token)
            except RefreshFailed:
                self.update_status(provider, athlete_id, ConnectionStatus.EXPIRED)
                raise

        self._store(
            provider,
            athlete_id,
            grant.access_token,
            grant.refresh_token or refresh_token,
            grant.expires_in,
        )
        return grant.access_token

    def update_status(self, provider: Provider, athlete_id: str, status: ConnectionStatus) -> None:
        if self._connections.update_status(athlete_id, provider, status) is not None:
            logger.info(f"{provider.value} connection for athlete {athlete_id} is now {status.value}")

    # ── Internal helpers ────────────────────────────────────────────────

    def _cipher(self, provider: Provider) -> TokenCipher:
        return TokenCipher(self._config.provider_config(provider).token_encryption_key)

    def _store(
        self,
        provider: Provider,
        athlete_id: str,
        access_token: str,
        refresh_token: str,
        expires_in: int,
    ) -> DeviceConnection:
        cipher = self._cipher(provider)
        return self._connections.upsert(
            athlete_id,
            provider,
            access_token=cipher.encrypt(access_token),
            refresh_token=cipher.encrypt(refresh_token or ""),
            expires_at=self._clock() + timedelta(seconds=expires_in),
        )


def _mock_token(provider: Provider, kind: str) -> str:
    return f"mock_{provider.value.lower()}_{kind}_{secrets.token_hex(16)}"


def _mock_grant(provider: Provider) -> TokenGrant:
    return TokenGrant(
        access_token=_mock_token(provider, "access"),
        refresh_token=_mock_token(provider, "refresh"),
        expires_in=MOCK_TOKEN_LIFETIME_SECONDS,
    )
