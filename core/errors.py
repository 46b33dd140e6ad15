"""Error taxonomy shared by the repository and the HTTP layer.

Each error carries the HTTP status and machine-readable code the API
returns for it, so routers never have to translate exceptions by hand.
"""

from typing import Any


class TrackerError(Exception):
    """Base class for all expected reading-tracker failures."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(TrackerError):
    """Malformed or missing input: empty title, bad rating, bad id, missing dbId."""

    status_code = 400
    code = "validation_error"


class NotFoundError(TrackerError):
    """Well-formed identifier with no matching record in the tenant."""

    status_code = 404
    code = "not_found"


class DuplicateNameError(TrackerError):
    """A collection with the same (trimmed, case-insensitive) title exists."""

    status_code = 409
    code = "duplicate_name"


class InvariantViolationError(TrackerError):
    """The operation would leave the tenant without any collection."""

    status_code = 409
    code = "invariant_violation"


class StoreUnavailableError(TrackerError):
    """The persistent store could not be reached or timed out."""

    status_code = 500
    code = "store_unavailable"


class PartialDeletionError(TrackerError):
    """Books were reassigned but the collection itself could not be removed."""

    status_code = 500
    code = "partial_deletion"


class DatabaseExistsError(TrackerError):
    """A tenant with the requested dbId already holds data."""

    status_code = 409
    code = "database_exists"

    def __init__(self, db_id: str):
        super().__init__("A database with this ID already exists", details={"dbId": db_id})
