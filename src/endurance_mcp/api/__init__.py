"""
High-Level API: the endurance workout export pipeline.

Every public function returns a clean dict or raises an ExportError.
Composes the SDK layer (HTTP client, cipher) internally.

Modules:
    model        - Parse it      (prescription dataclasses)
    normalizer   - Flatten it    (repeat expansion, target encodings)
    validator    - Check it      (structural and sport rules)
    exporters    - Shape it      (one payload builder per provider)
    vault        - Authorize it  (encrypted tokens, refresh)
    export       - Deliver it    (status machine, background pushes)
    connections  - Connect it    (OAuth handshake, primary provider)
    preview      - Show it       (totals and headline target)
"""

from endurance_mcp.api.model import Prescription, Step, RepeatBlock
from endurance_mcp.api.normalizer import normalize
from endurance_mcp.api.validator import validate
from endurance_mcp.api.exporters import EXPORTERS, get_exporter, convert
from endurance_mcp.api.oauth_state import OAuthStateStore
from endurance_mcp.api.vault import TokenVault
from endurance_mcp.api.export import ExportOrchestrator
from endurance_mcp.api.connections import (
    initiate_connection,
    complete_connection,
    list_connections,
    set_primary_provider,
)
from endurance_mcp.api.preview import summarize

__all__ = [
    # Model
    "Prescription", "Step", "RepeatBlock",
    # Pipeline
    "normalize", "validate", "EXPORTERS", "get_exporter", "convert",
    # Credentials
    "OAuthStateStore", "TokenVault",
    # Delivery
    "ExportOrchestrator",
    # Connections
    "initiate_connection", "complete_connection", "list_connections", "set_primary_provider",
    # Preview
    "summarize",
]
