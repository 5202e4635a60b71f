"""
JSON-file record store for device connections and training sessions.

One file per record, named from the base64url-encoded ids so distinct
ids never share a file and no id can escape the data directory:
- {data_dir}/connections/{b64(athlete_id)}__{provider}.json
- {data_dir}/sessions/{b64(session_id)}.json

Loaded records are checked against the ids they were requested by.

Read-modify-write operations hold a per-store lock so background export
threads can share one store. Timestamps are ISO-8601 UTC strings on disk.
"""

import base64
import json
import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from endurance_mcp.sdk.types import ConnectionStatus, ExportStatus, Provider, SessionType

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DeviceConnection:
    """Encrypted OAuth credential pair linking one athlete to one provider."""
    athlete_id: str
    provider: Provider
    access_token: str  # encrypted
    refresh_token: str  # encrypted
    expires_at: datetime
    status: ConnectionStatus = ConnectionStatus.CONNECTED
    is_primary: bool = False
    connected_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["provider"] = self.provider.value
        data["status"] = self.status.value
        for key in ("expires_at", "connected_at", "updated_at"):
            data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, d: dict) -> "DeviceConnection":
        return cls(
            athlete_id=d["athlete_id"],
            provider=Provider(d["provider"]),
            access_token=d["access_token"],
            refresh_token=d["refresh_token"],
            expires_at=_parse_time(d["expires_at"]),
            status=ConnectionStatus(d.get("status", ConnectionStatus.CONNECTED.value)),
            is_primary=bool(d.get("is_primary", False)),
            connected_at=_parse_time(d.get("connected_at")) or utcnow(),
            updated_at=_parse_time(d.get("updated_at")) or utcnow(),
        )


@dataclass
class TrainingSession:
    """A planned session. Owned by the plan collaborator; export fields are ours."""
    id: str
    athlete_id: str
    type: SessionType
    prescription: Dict[str, Any] = field(default_factory=dict)
    title: str = ""
    date: Optional[str] = None
    export_status: Optional[ExportStatus] = None
    export_provider: Optional[Provider] = None
    exported_at: Optional[datetime] = None
    external_workout_id: Optional[str] = None
    last_export_error: Optional[str] = None

    def export_state(self) -> Dict[str, Any]:
        """Export fields as exposed to read paths."""
        return {
            "exportStatus": self.export_status.value if self.export_status else None,
            "exportProvider": self.export_provider.value if self.export_provider else None,
            "exportedAt": self.exported_at.isoformat() if self.exported_at else None,
            "externalWorkoutId": self.external_workout_id,
            "lastExportError": self.last_export_error,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "athlete_id": self.athlete_id,
            "type": self.type.value,
            "prescription": self.prescription,
            "title": self.title,
            "date": self.date,
            "export_status": self.export_status.value if self.export_status else None,
            "export_provider": self.export_provider.value if self.export_provider else None,
            "exported_at": self.exported_at.isoformat() if self.exported_at else None,
            "external_workout_id": self.external_workout_id,
            "last_export_error": self.last_export_error,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TrainingSession":
        return cls(
            id=d["id"],
            athlete_id=d["athlete_id"],
            type=SessionType(d["type"]),
            prescription=d.get("prescription") or {},
            title=d.get("title", ""),
            date=d.get("date"),
            export_status=ExportStatus(d["export_status"]) if d.get("export_status") else None,
            export_provider=Provider(d["export_provider"]) if d.get("export_provider") else None,
            exported_at=_parse_time(d.get("exported_at")),
            external_workout_id=d.get("external_workout_id"),
            last_export_error=d.get("last_export_error"),
        )


class _JsonDirectory:
    """A directory of JSON documents, one file per encoded key."""

    def __init__(self, root: Path):
        self._root = Path(root)

    def path(self, key: str) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root / f"{key}.json"

    def load(self, key: str) -> Optional[dict]:
        return self._load_file(self.path(key))

    def save(self, key: str, data: dict) -> None:
        target = self.path(key)
        tmp = target.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            json.dump(data, f)
        tmp.replace(target)

    def all(self) -> List[dict]:
        if not self._root.exists():
            return []
        records = []
        for path in sorted(self._root.glob("*.json")):
            data = self._load_file(path)
            if data is not None:
                records.append(data)
        return records

    @staticmethod
    def _load_file(path: Path) -> Optional[dict]:
        if not path.exists():
            return None
        try:
            with open(path, "r") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Skipping unreadable record {path}: {e}")
            return None


class ConnectionStore:
    """Device connections, one per (athlete, provider)."""

    def __init__(self, root: Path):
        self._dir = _JsonDirectory(Path(root) / "connections")
        self._lock = threading.RLock()

    def get(self, athlete_id: str, provider: Provider) -> Optional[DeviceConnection]:
        data = self._dir.load(_connection_key(athlete_id, provider))
        if not data or data.get("athlete_id") != athlete_id or data.get("provider") != provider.value:
            return None
        return DeviceConnection.from_dict(data)

    def list_for_athlete(
        self, athlete_id: str, status: ConnectionStatus = None,
    ) -> List[DeviceConnection]:
        """Connections for an athlete, primary first, then most recently connected."""
        connections = [
            DeviceConnection.from_dict(d) for d in self._dir.all()
            if d.get("athlete_id") == athlete_id
        ]
        if status is not None:
            connections = [c for c in connections if c.status == status]
        connections.sort(key=lambda c: c.connected_at, reverse=True)
        connections.sort(key=lambda c: c.is_primary, reverse=True)
        return connections

    def upsert(
        self,
        athlete_id: str,
        provider: Provider,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> DeviceConnection:
        """Create or replace the credential pair, marking the row CONNECTED.

        connected_at and is_primary survive updates.
        """
        with self._lock:
            connection = self.get(athlete_id, provider)
            if connection is None:
                connection = DeviceConnection(
                    athlete_id=athlete_id,
                    provider=provider,
                    access_token=access_token,
                    refresh_token=refresh_token,
                    expires_at=expires_at,
                )
            else:
                connection.access_token = access_token
                connection.refresh_token = refresh_token
                connection.expires_at = expires_at
                connection.status = ConnectionStatus.CONNECTED
                connection.updated_at = utcnow()
            self.save(connection)
            return connection

    def update_status(
        self, athlete_id: str, provider: Provider, status: ConnectionStatus,
    ) -> Optional[DeviceConnection]:
        with self._lock:
            connection = self.get(athlete_id, provider)
            if connection is None:
                return None
            connection.status = status
            connection.updated_at = utcnow()
            self.save(connection)
            return connection

    def set_primary(self, athlete_id: str, provider: Provider) -> DeviceConnection:
        """Make one connection primary and clear the flag on all others."""
        with self._lock:
            target = None
            for connection in self.list_for_athlete(athlete_id):
                is_target = connection.provider == provider
                if is_target:
                    target = connection
                if connection.is_primary != is_target:
                    connection.is_primary = is_target
                    connection.updated_at = utcnow()
                    self.save(connection)
            if target is None:
                raise KeyError(f"No {provider.value} connection for athlete {athlete_id}")
            return target

    def save(self, connection: DeviceConnection) -> None:
        with self._lock:
            self._dir.save(_connection_key(connection.athlete_id, connection.provider), connection.to_dict())


class SessionStore:
    """Training sessions and their persisted export state."""

    def __init__(self, root: Path):
        self._dir = _JsonDirectory(Path(root) / "sessions")
        self._lock = threading.RLock()

    def get(self, session_id: str) -> Optional[TrainingSession]:
        data = self._dir.load(_record_key(session_id))
        if not data or data.get("id") != session_id:
            return None
        return TrainingSession.from_dict(data)

    def save(self, session: TrainingSession) -> None:
        with self._lock:
            self._dir.save(_record_key(session.id), session.to_dict())

    def update_export_state(self, session_id: str, **fields) -> Optional[TrainingSession]:
        """Write export fields (export_status, export_provider, exported_at,
        external_workout_id, last_export_error). Unnamed fields are untouched."""
        with self._lock:
            session = self.get(session_id)
            if session is None:
                return None
            for name, value in fields.items():
                if not hasattr(session, name):
                    raise AttributeError(f"TrainingSession has no field '{name}'")
                setattr(session, name, value)
            self._dir.save(_record_key(session.id), session.to_dict())
            return session

    def find(
        self,
        athlete_id: str,
        session_type: SessionType = None,
        export_status: ExportStatus = None,
    ) -> List[TrainingSession]:
        sessions = [
            TrainingSession.from_dict(d) for d in self._dir.all()
            if d.get("athlete_id") == athlete_id
        ]
        if session_type is not None:
            sessions = [s for s in sessions if s.type == session_type]
        if export_status is not None:
            sessions = [s for s in sessions if s.export_status == export_status]
        return sessions


# ── Internal helpers ────────────────────────────────────────────────────


def _record_key(raw_id: str) -> str:
    # base64url has no path separators or dots and is injective
    return base64.urlsafe_b64encode(str(raw_id).encode("utf-8")).decode("ascii").rstrip("=")


def _connection_key(athlete_id: str, provider: Provider) -> str:
    return f"{_record_key(athlete_id)}__{provider.value}"


def _parse_time(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
