"""Application error hierarchy.

Every error carries an ``error_type`` key so the presentation layer can
branch on the kind of failure without inspecting exception classes.
"""


class AppError(Exception):
    """Base exception for all application errors."""

    error_type = "internal"
    label = "Internal error"

    def __str__(self) -> str:
        message = super().__str__()
        return f"{self.label}: {message}" if message else self.label

    @property
    def message(self) -> str:
        return super().__str__()

    def to_frontend_error(self) -> dict:
        """Serializable form for the UI layer."""
        return {"error_type": self.error_type, "message": str(self)}


class DatabaseError(AppError):
    error_type = "database"
    label = "Database error"


class NetworkError(AppError):
    """The remote service could not be reached (no HTTP response)."""

    error_type = "network"
    label = "Network error"


class CatalogTimeoutError(NetworkError):
    """A remote catalog request exceeded its timeout."""


class AuthError(AppError):
    """Credentials were rejected, or could not be checked."""

    error_type = "auth"
    label = "Authentication error"


class SyncError(AppError):
    """Generic sync failure: bad status, malformed payload, transport."""

    error_type = "sync"
    label = "Sync error"


class SyncTimeoutError(SyncError):
    """The catalog fetch of a sync pass timed out."""


class SyncInProgressError(SyncError):
    """Another sync pass is already running."""


class ValidationError(AppError):
    error_type = "validation"
    label = "Validation error"


class NotFoundError(AppError):
    error_type = "not_found"
    label = "Not found"


class AlreadyExistsError(AppError):
    error_type = "already_exists"
    label = "Already exists"


class InternalError(AppError):
    """Programmer or precondition error, e.g. store not initialized."""


class ConfigurationError(AppError):
    """Required configuration (such as remote credentials) is missing."""

    error_type = "config"
    label = "Configuration error"
