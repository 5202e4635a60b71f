"""
Provider HTTP client.

Handles HTTP transport, bearer auth, the OAuth token endpoint, and
classification of HTTP failures into the export error taxonomy.
Domain logic (which token to use, what to persist) lives in api/.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

import requests

from endurance_mcp.errors import ProviderRejected, RefreshFailed, TransientNetworkError
from endurance_mcp.sdk.types import DEFAULT_TOKEN_LIFETIME_SECONDS, WORKOUT_DRAFT_STATUS

if TYPE_CHECKING:
    from endurance_mcp.config import ProviderConfig

logger = logging.getLogger(__name__)

# Longest provider error text surfaced to the user
MAX_ERROR_DETAIL = 200


@dataclass
class TokenGrant:
    """Token endpoint response."""
    access_token: str
    refresh_token: Optional[str]
    expires_in: int


class ProviderClient:
    """
    HTTP transport for one provider.

    POST {api_base_url}/workouts   create a workout (bearer token)
    POST {token_url}               authorization_code and refresh_token grants
    """

    def __init__(
        self,
        config: "ProviderConfig",
        session: requests.Session = None,
        timeout: float = 30.0,
    ):
        self._config = config
        self._session = session or requests.Session()
        self._timeout = timeout

    @property
    def provider(self) -> str:
        return self._config.provider.value

    def create_workout(self, access_token: str, payload: Dict[str, Any]) -> str:
        """
        Create a workout on the provider platform.

        Args:
            access_token: Decrypted provider access token
            payload: Provider-specific workout payload

        Returns:
            The provider's workout id

        Raises:
            ProviderRejected: On any HTTP error status
            TransientNetworkError: On connection-level failures
        """
        url = f"{self._config.api_base_url}/workouts"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        body = {**payload, "status": WORKOUT_DRAFT_STATUS}

        try:
            response = self._session.post(url, headers=headers, json=body, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error(f"Error creating workout in {self.provider}: {e}")
            raise TransientNetworkError(f"Failed to create workout in {self.provider}")

        if not response.ok:
            logger.error(
                f"Failed to create workout in {self.provider}: {response.status_code} {response.text}"
            )
            raise self._classify_workout_failure(response)

        try:
            data = response.json()
        except ValueError:
            data = None
        workout_id = data.get("id") if isinstance(data, dict) else None
        if not workout_id:
            logger.error(f"{self.provider} workout response had no id: {response.text}")
            raise ProviderRejected(
                f"{self.provider} did not return a workout id", status_code=response.status_code
            )
        return str(workout_id)

    def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange an authorization code for tokens.

        POST {token_url} grant_type=authorization_code
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._config.redirect_uri,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        try:
            response = self._post_token(data)
        except requests.RequestException as e:
            logger.error(f"Error exchanging {self.provider} authorization code: {e}")
            raise TransientNetworkError(f"Failed to reach {self.provider} token endpoint")

        if not response.ok:
            logger.error(
                f"Failed to exchange {self.provider} code for tokens: "
                f"{response.status_code} {response.text}"
            )
            raise ProviderRejected(
                "Failed to exchange authorization code", status_code=response.status_code
            )
        return self._parse_grant(response)

    def refresh(self, refresh_token: str) -> TokenGrant:
        """
        Exchange a refresh token for a new access token.

        POST {token_url} grant_type=refresh_token

        Raises:
            RefreshFailed: If the provider rejects the refresh token
            TransientNetworkError: On connection-level failures
        """
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        try:
            response = self._post_token(data)
        except requests.RequestException as e:
            logger.error(f"Error refreshing {self.provider} token: {e}")
            raise TransientNetworkError(f"Failed to reach {self.provider} token endpoint")

        if not response.ok:
            logger.error(
                f"Failed to refresh {self.provider} token: {response.status_code} {response.text}"
            )
            raise RefreshFailed(f"Failed to refresh {self.provider} access token")
        try:
            return self._parse_grant(response)
        except ProviderRejected:
            raise RefreshFailed(f"Failed to refresh {self.provider} access token")

    # ── Internal helpers ────────────────────────────────────────────────

    def _post_token(self, data: Dict[str, str]) -> requests.Response:
        return self._session.post(
            self._config.token_url,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data=data,
            timeout=self._timeout,
        )

    def _parse_grant(self, response: requests.Response) -> TokenGrant:
        try:
            data = response.json()
            if not isinstance(data, dict):
                raise TypeError("token response is not an object")
            grant = TokenGrant(
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token"),
                expires_in=int(data.get("expires_in", DEFAULT_TOKEN_LIFETIME_SECONDS)),
            )
        except (ValueError, KeyError, TypeError):
            logger.error(f"Malformed {self.provider} token response: {response.text}")
            raise ProviderRejected(
                f"{self.provider} returned a malformed token response",
                status_code=response.status_code,
            )

        if "expires_in" not in data:
            logger.warning(
                f"{self.provider} token response has no expires_in, "
                f"assuming {DEFAULT_TOKEN_LIFETIME_SECONDS}s"
            )
        return grant

    def _classify_workout_failure(self, response: requests.Response) -> ProviderRejected:
        status = response.status_code
        if status == 401:
            return ProviderRejected(
                f"{self.provider} authentication failed. Please reconnect your account.",
                status_code=status,
            )
        if status == 403:
            return ProviderRejected(
                f"{self.provider} access denied. Please check your permissions.",
                status_code=status,
            )
        if status == 400:
            detail = _error_detail(response)
            message = f"Invalid workout format for {self.provider}"
            if detail:
                message = f"{message}: {detail}"
            return ProviderRejected(message, status_code=status)
        return ProviderRejected(
            f"Failed to create workout in {self.provider}: {status}", status_code=status
        )


def _error_detail(response: requests.Response) -> str:
    """Pull the provider's own message out of an error body."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("message", "error_description", "error"):
            if isinstance(data.get(key), str):
                return data[key][:MAX_ERROR_DETAIL]
    return (response.text or "").strip()[:MAX_ERROR_DETAIL]
