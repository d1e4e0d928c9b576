"""
Claims workflow exception hierarchy.

Every service raises one of these types. Blueprints register handlers
against ``ClaimsError`` once and map each subclass to its HTTP status and
machine-readable code, so a failure always reaches the caller as a message
plus a redirect to the actor's dashboard.

Usage:
    from cmcs.core.exceptions import NotFoundError, IllegalTransitionError

    raise NotFoundError(resource="Claim", resource_id=42)
    raise IllegalTransitionError("Only pending claims can be approved by coordinators.")
"""


class ClaimsError(Exception):
    """Base class. ``status_code`` and ``code`` drive the HTTP response."""

    status_code = 400
    code = "ERR_VALIDATION_INVALID"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(ClaimsError):
    """Raised when a claim or user id does not resolve.

    Also used when a lecturer addresses a claim they do not own, so the
    response does not confirm that the claim exists.

    Args:
        resource: Human-readable entity name (e.g. "Claim", "User").
        resource_id: The PK that was looked up. Logged, and shown in str().
        message: Optional user-facing override.
    """

    status_code = 404
    code = "ERR_NOT_FOUND"

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message or f"{resource} not found.")

    def __str__(self) -> str:
        if self.resource_id is None:
            return self.message
        return f"{self.message} ({self.resource} id={self.resource_id})"


class ValidationError(ClaimsError):
    """Raised when claim input is well-formed but violates a business rule.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class InvalidReasonError(ValidationError):
    """A rejection was attempted with a missing or whitespace-only reason."""

    code = "ERR_VALIDATION_REQUIRED"

    def __init__(self, message: str = "Rejection reason is required.") -> None:
        super().__init__(message, details={"rejection_reason": "required"})


class IllegalTransitionError(ClaimsError):
    """The claim's current status is outside the action's guarded from-set.

    Args:
        message: Role-specific explanation shown to the actor.
        claim_id: Claim the attempt targeted.
        action: Transition action name.
        current_status: Status observed when the guard failed.
    """

    status_code = 409
    code = "ERR_CONFLICT_STATE"

    def __init__(
        self,
        message: str,
        claim_id: int | None = None,
        action: str | None = None,
        current_status: str | None = None,
    ) -> None:
        self.claim_id = claim_id
        self.action = action
        self.current_status = current_status
        super().__init__(message)


class PermissionDeniedError(ClaimsError):
    """The actor's role does not carry the right the operation needs."""

    status_code = 403
    code = "ERR_FORBIDDEN"

    def __init__(self, message: str = "You are not allowed to perform this action.",
                 actor_id: int | None = None, required: str | None = None) -> None:
        self.actor_id = actor_id
        self.required = required
        super().__init__(message)


class UnsupportedFileTypeError(ClaimsError):
    """Uploaded document extension is not in the allowed set."""

    status_code = 415
    code = "ERR_UNSUPPORTED_FILE_TYPE"

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"File type {extension or '(none)'} is not allowed.")


class FileTooLargeError(ClaimsError):
    """Uploaded document exceeds the size ceiling."""

    status_code = 413
    code = "ERR_FILE_TOO_LARGE"

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__("File size must be less than 5MB.")


class StorageFailureError(ClaimsError):
    """Persistence or blob storage write failed. Treated as transient."""

    status_code = 500
    code = "ERR_STORAGE"

    def __init__(self, message: str = "A storage error occurred. Please try again.") -> None:
        super().__init__(message)
