"""
Error taxonomy for the endurance export pipeline.

Every error carries a user-safe message. Tools turn these into
{"success": false, "error": ..., "error_code": ...} responses.
"""


class ExportError(Exception):
    """Base class for every expected pipeline failure."""

    error_code = "EXPORT_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "error_code": self.error_code}


class ConfigurationError(ExportError):
    error_code = "CONFIGURATION_ERROR"


class UnsupportedProvider(ExportError):
    error_code = "UNSUPPORTED_PROVIDER"


# ── Workout content ─────────────────────────────────────────────────────


class ValidationError(ExportError):
    """Workout is malformed or under-specified. User-correctable."""

    error_code = "VALIDATION_ERROR"

    @property
    def reason(self) -> str:
        return self.message


class MalformedPrescription(ValidationError):
    error_code = "MALFORMED_PRESCRIPTION"


class MalformedTarget(ValidationError):
    error_code = "MALFORMED_TARGET"


# ── Session pre-flight ──────────────────────────────────────────────────


class SessionNotFound(ExportError):
    error_code = "SESSION_NOT_FOUND"


class OwnershipMismatch(ExportError):
    error_code = "OWNERSHIP_MISMATCH"


class NotExportable(ExportError):
    error_code = "NOT_EXPORTABLE"


# ── Credentials and delivery ────────────────────────────────────────────


class NotConnected(ExportError):
    """No usable credential. Resolved only by reconnecting a device."""

    error_code = "NOT_CONNECTED"


class RefreshFailed(ExportError):
    error_code = "REFRESH_FAILED"


class TokenDecryptionError(ExportError):
    error_code = "TOKEN_DECRYPTION_FAILED"


class OAuthStateError(ExportError):
    error_code = "INVALID_OAUTH_STATE"


class ProviderRejected(ExportError):
    """Provider answered with an HTTP error status."""

    error_code = "PROVIDER_REJECTED"

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_credential_error(self) -> bool:
        return self.status_code in (401, 403)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        if self.is_credential_error:
            result["reconnect_required"] = True
        return result


class TransientNetworkError(ExportError):
    """Connection-level failure talking to a provider. Retry is manual."""

    error_code = "NETWORK_ERROR"
