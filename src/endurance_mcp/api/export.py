"""
Export orchestration: normalize → validate → convert → deliver.

Drives the per-session export status:

    NOT_CONNECTED → PENDING → SENT | FAILED

Every attempt re-runs the whole transition from the session's current
state. Background exports (auto-push after a plan save, pending push
after a device connects) run on a thread pool; the caller gets a Future
and never sees the export's failure, which is logged instead.

Exports of the same session are not serialized against each other: the
last write to the session's export fields wins.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, List, Optional

from endurance_mcp.api.exporters import EXPORTERS, get_exporter
from endurance_mcp.api.normalizer import normalize
from endurance_mcp.api.validator import validate
from endurance_mcp.api.vault import TokenVault
from endurance_mcp.errors import (
    ExportError,
    NotConnected,
    NotExportable,
    OwnershipMismatch,
    SessionNotFound,
)
from endurance_mcp.sdk.client import ProviderClient
from endurance_mcp.sdk.types import ConnectionStatus, ExportStatus, Provider, SessionType
from endurance_mcp.store import ConnectionStore, SessionStore, TrainingSession, utcnow

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "Export failed: unexpected error"


class ExportOrchestrator:
    def __init__(
        self,
        sessions: SessionStore,
        connections: ConnectionStore,
        vault: TokenVault,
        client_for: Callable[[Provider], ProviderClient],
        exporters: Dict = None,
        executor: Executor = None,
        max_concurrency_per_provider: int = 4,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._sessions = sessions
        self._connections = connections
        self._vault = vault
        self._client_for = client_for
        self._exporters = EXPORTERS if exporters is None else exporters
        self._executor = executor or ThreadPoolExecutor(
            max_workers=8, thread_name_prefix="endurance-export",
        )
        self._clock = clock
        # Caps concurrent outbound workout calls to each provider
        self._provider_slots = {
            provider: threading.BoundedSemaphore(max_concurrency_per_provider)
            for provider in Provider
        }

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ── Provider selection ──────────────────────────────────────────────

    def select_provider(self, athlete_id: str) -> Optional[Provider]:
        """Primary CONNECTED provider, else the most recently connected, else None."""
        connected = self._connections.list_for_athlete(athlete_id, status=ConnectionStatus.CONNECTED)
        if not connected:
            return None

        for connection in connected:
            if connection.is_primary:
                return connection.provider

        return max(connected, key=lambda c: c.connected_at).provider

    # ── Read paths ──────────────────────────────────────────────────────

    def get_normalized_workout(self, session_id: str, athlete_id: str) -> dict:
        """Canonical workout for a session, without validation (preview)."""
        session = self._load_exportable(session_id, athlete_id)
        return normalize(session.prescription)

    def get_export_state(self, session_id: str, athlete_id: str) -> dict:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound("Training session not found")
        if session.athlete_id != athlete_id:
            raise OwnershipMismatch("Training session does not belong to athlete")
        return {"sessionId": session.id, **session.export_state()}

    # ── Export ──────────────────────────────────────────────────────────

    def export_workout_to_provider(
        self, session_id: str, athlete_id: str, provider: Provider,
    ) -> TrainingSession:
        """Export one session and persist the outcome.

        Raises:
            SessionNotFound, OwnershipMismatch, NotExportable: Before any
                status is written.
            ExportError: Any later failure, after the session is marked FAILED.
        """
        session = self._load_exportable(session_id, athlete_id)

        self._sessions.update_export_state(
            session_id,
            export_status=ExportStatus.PENDING,
            export_provider=provider,
        )

        try:
            workout = normalize(session.prescription)
            validate(workout)
            payload = get_exporter(provider, self._exporters).build(workout)

            access_token = self._vault.get_access_token(provider, athlete_id)
            if not access_token:
                raise NotConnected(
                    f"No valid {provider.value} connection found. Please reconnect your device."
                )

            with self._provider_slots[provider]:
                external_id = self._client_for(provider).create_workout(access_token, payload)
        except ExportError as e:
            self._record_failure(session_id, provider, e.message)
            raise
        except Exception:
            logger.exception(f"Unexpected error exporting session {session_id} to {provider.value}")
            self._record_failure(session_id, provider, UNEXPECTED_ERROR_MESSAGE)
            raise

        updated = self._sessions.update_export_state(
            session_id,
            export_status=ExportStatus.SENT,
            export_provider=provider,
            exported_at=self._clock(),
            external_workout_id=external_id,
            last_export_error=None,
        )
        logger.info(
            f"Successfully exported workout {session_id} to {provider.value} (external ID: {external_id})"
        )
        return updated

    def auto_push_endurance_workout(self, session_id: str, athlete_id: str) -> Optional[Future]:
        """Best-effort export after a coach saves an ENDURANCE session.

        Never raises. Returns the background Future when an export was
        launched, None when the athlete has no connected provider or the
        session is missing, foreign or not exportable. Sessions that fail
        those checks are left untouched.
        """
        try:
            try:
                self._load_exportable(session_id, athlete_id)
            except (SessionNotFound, OwnershipMismatch, NotExportable) as e:
                logger.warning(f"Skipping auto-push of session {session_id}: {e.message}")
                return None

            provider = self.select_provider(athlete_id)
            if provider is None:
                self._sessions.update_export_state(
                    session_id,
                    export_status=ExportStatus.NOT_CONNECTED,
                    export_provider=None,
                    last_export_error=None,
                )
                return None

            return self._spawn(
                f"Background export for session {session_id}",
                self.export_workout_to_provider, session_id, athlete_id, provider,
            )
        except Exception:
            logger.exception(f"Auto-push failed for session {session_id}")
            return None

    def push_pending_workouts(self, athlete_id: str, provider: Provider) -> List[Future]:
        """Export every NOT_CONNECTED ENDURANCE session for a newly connected athlete.

        Each export runs independently; none waits on another.
        """
        pending = self._sessions.find(
            athlete_id,
            session_type=SessionType.ENDURANCE,
            export_status=ExportStatus.NOT_CONNECTED,
        )
        logger.info(f"Found {len(pending)} pending workouts for athlete {athlete_id}")

        return [
            self._spawn(
                f"Pending push of session {session.id}",
                self.export_workout_to_provider, session.id, athlete_id, provider,
            )
            for session in pending
        ]

    # ── Internal helpers ────────────────────────────────────────────────

    def _load_exportable(self, session_id: str, athlete_id: str) -> TrainingSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound("Training session not found")
        if session.athlete_id != athlete_id:
            raise OwnershipMismatch("Training session does not belong to athlete")
        if session.type != SessionType.ENDURANCE:
            raise NotExportable("Only ENDURANCE sessions can be exported")
        return session

    def _record_failure(self, session_id: str, provider: Provider, message: str) -> None:
        self._sessions.update_export_state(
            session_id,
            export_status=ExportStatus.FAILED,
            export_provider=provider,
            last_export_error=message,
        )
        logger.error(f"Failed to export workout {session_id} to {provider.value}: {message}")

    def _spawn(self, description: str, fn, *args) -> Future:
        """Run fn on the export pool; failures are logged inside the task."""

        def run():
            try:
                return fn(*args)
            except ExportError as e:
                logger.error(f"{description} failed: {e.message}")
            except Exception:
                logger.exception(f"{description} failed")
            return None

        return self._executor.submit(run)
