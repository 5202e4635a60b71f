"""
Endurance export types, enums, and constants.

All provider identifiers, wire codes, and magic values live here.
"""

from enum import Enum

from endurance_mcp.errors import UnsupportedProvider


class Provider(str, Enum):
    """External fitness-device platforms workouts are pushed to."""
    GARMIN = "GARMIN"
    WAHOO = "WAHOO"


class Sport(str, Enum):
    BIKE = "BIKE"
    RUN = "RUN"
    SWIM = "SWIM"


class StepType(str, Enum):
    WARMUP = "WARMUP"
    WORK = "WORK"
    RECOVERY = "RECOVERY"
    COOLDOWN = "COOLDOWN"


class DurationType(str, Enum):
    TIME = "TIME"
    DISTANCE = "DISTANCE"


class TargetKind(str, Enum):
    """Primary intensity metric for a step."""
    POWER = "POWER"
    HEART_RATE = "HEART_RATE"
    PACE = "PACE"


class TargetUnit(str, Enum):
    WATTS = "WATTS"
    BPM = "BPM"
    SEC_PER_KM = "SEC_PER_KM"


class ConnectionStatus(str, Enum):
    CONNECTED = "CONNECTED"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"
    ERROR = "ERROR"


class ExportStatus(str, Enum):
    """Delivery state persisted on a training session."""
    NOT_CONNECTED = "NOT_CONNECTED"
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class SessionType(str, Enum):
    ENDURANCE = "ENDURANCE"
    STRENGTH = "STRENGTH"


# Unit implied by each primary target kind
TARGET_UNITS = {
    TargetKind.POWER: TargetUnit.WATTS,
    TargetKind.HEART_RATE: TargetUnit.BPM,
    TargetKind.PACE: TargetUnit.SEC_PER_KM,
}

# Prescription field names holding the min/max range for each target kind
TARGET_RANGE_FIELDS = {
    TargetKind.POWER: ("minWatts", "maxWatts"),
    TargetKind.HEART_RATE: ("minBpm", "maxBpm"),
    TargetKind.PACE: ("minSecPerKm", "maxSecPerKm"),
}

ZONE_MIN = 1
ZONE_MAX = 5

CADENCE_SPORT = Sport.BIKE

# OAuth
OAUTH_SCOPE = "workout:write"
OAUTH_STATE_TTL_SECONDS = 10 * 60
TOKEN_REFRESH_BUFFER_SECONDS = 5 * 60
MOCK_TOKEN_LIFETIME_SECONDS = 3600
# Used when a token response omits expires_in
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

# Status sent with every created workout
WORKOUT_DRAFT_STATUS = "draft"


def parse_provider(value) -> Provider:
    """Resolve a provider identifier, case-insensitively."""
    if isinstance(value, Provider):
        return value
    try:
        return Provider(str(value).upper())
    except ValueError:
        raise UnsupportedProvider(
            f"Unknown provider '{value}'. Use: {', '.join(p.value.lower() for p in Provider)}"
        )
