"""
Endurance export low-level SDK.

Thin typed wrapper over the provider HTTP APIs and the token cipher.
"""

from endurance_mcp.sdk.client import ProviderClient, TokenGrant
from endurance_mcp.sdk.crypto import TokenCipher
from endurance_mcp.sdk.types import (
    Provider,
    Sport,
    StepType,
    DurationType,
    TargetKind,
    TargetUnit,
    ConnectionStatus,
    ExportStatus,
    SessionType,
    parse_provider,
)

__all__ = [
    "ProviderClient",
    "TokenGrant",
    "TokenCipher",
    "Provider",
    "Sport",
    "StepType",
    "DurationType",
    "TargetKind",
    "TargetUnit",
    "ConnectionStatus",
    "ExportStatus",
    "SessionType",
    "parse_provider",
]
