"""
OAuth `state` parameters for the authorization-code handshake.

Populated when a connection is initiated, consumed exactly once by the
callback, and expired by an opportunistic sweep on every access. Held in
process memory, so the callback must reach the process that issued it.
"""

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict

from endurance_mcp.errors import OAuthStateError
from endurance_mcp.sdk.types import OAUTH_STATE_TTL_SECONDS, Provider
from endurance_mcp.store import utcnow


@dataclass(frozen=True)
class PendingAuthorization:
    provider: Provider
    athlete_id: str
    expires_at: datetime


class OAuthStateStore:
    def __init__(
        self,
        ttl_seconds: int = OAUTH_STATE_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._pending: Dict[str, PendingAuthorization] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def issue(self, provider: Provider, athlete_id: str) -> str:
        """Create a single-use state token for this athlete and provider."""
        state = secrets.token_hex(32)
        with self._lock:
            self._sweep()
            self._pending[state] = PendingAuthorization(
                provider=provider,
                athlete_id=athlete_id,
                expires_at=self._clock() + self._ttl,
            )
        return state

    def consume(self, state: str, provider: Provider, athlete_id: str) -> PendingAuthorization:
        """Verify and remove a state token.

        Raises:
            OAuthStateError: If the state is unknown, expired, already used,
                or was issued for a different provider or athlete.
        """
        with self._lock:
            self._sweep()
            pending = self._pending.get(state)
            if pending is None:
                raise OAuthStateError("Invalid or expired state parameter")
            if pending.provider != provider or pending.athlete_id != athlete_id:
                raise OAuthStateError("State parameter mismatch")
            del self._pending[state]
            return pending

    def _sweep(self) -> None:
        now = self._clock()
        expired = [state for state, p in self._pending.items() if p.expires_at <= now]
        for state in expired:
            del self._pending[state]
