"""Domain errors — one class per failure kind the API can report.

Learn: Services raise these instead of HTTPException so they stay
transport-agnostic. Each class carries a stable `kind` string and the
HTTP status it maps to; main.py registers one exception handler that
renders any RecordGateError as {"kind": ..., "message": ...}.
"""


class RecordGateError(Exception):
    """Base class for every error the core reports to a caller."""

    kind = "internal_error"
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(RecordGateError):
    """Missing or malformed input."""

    kind = "validation_error"
    status_code = 400
    default_message = "Invalid input"


class MissingCredential(RecordGateError):
    """No bearer token on a protected call."""

    kind = "missing_credential"
    status_code = 401
    default_message = "Authentication required"


class InvalidOrExpiredCredential(RecordGateError):
    """The bearer token is malformed, badly signed, or expired."""

    kind = "invalid_or_expired_credential"
    status_code = 403
    default_message = "Token is invalid or expired, please log in again"


class UnauthorizedRole(RecordGateError):
    """The caller's role may not perform this operation."""

    kind = "unauthorized_role"
    status_code = 403
    default_message = "Your role is not allowed to do this"


class InvalidCredentials(RecordGateError):
    """Unknown user or wrong password. The two are deliberately merged."""

    kind = "invalid_credentials"
    status_code = 401
    default_message = "Invalid username or password"


class DuplicateIdentity(RecordGateError):
    kind = "duplicate_identity"
    status_code = 409
    default_message = "Username or email is already registered"


class DuplicateRelationship(RecordGateError):
    kind = "duplicate_relationship"
    status_code = 409
    default_message = "This submitter is already linked to you"


class TargetNotFound(RecordGateError):
    kind = "target_not_found"
    status_code = 404
    default_message = "User not found"


class InvalidTargetRole(RecordGateError):
    kind = "invalid_target_role"
    status_code = 400
    default_message = "Only submitters can be linked"


class StoreError(RecordGateError):
    """Any store failure that is not a known constraint violation.

    The message is always generic; adapter detail goes to the log only.
    """

    kind = "store_error"
    status_code = 500
    default_message = "Storage error"

    def __init__(self, message: str | None = None):
        super().__init__(None)
        self.detail = message
