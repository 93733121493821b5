"""
Typed exceptions for the ABFI core.

Services raise these; routers translate them into HTTP responses:

    NotFoundError           -> 404
    PermissionDeniedError   -> 403
    VersionConflictError    -> 409
    InvalidTransitionError  -> 400
    InvalidVersionDataError -> 400
    UnknownEntityTypeError  -> 400
    InvalidInputError       -> 400
    StoreUnavailableError   -> 503

Each exception carries a machine-readable ``code``.
"""


class ABFIError(Exception):
    code: str = "ABFI_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ABFIError, LookupError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class StoreUnavailableError(ABFIError):
    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Database not available"):
        super().__init__(message)


class VersionConflictError(ABFIError):
    """The version being superseded is no longer current."""

    code = "VERSION_CONFLICT"

    def __init__(self, entity_type: str, entity_id, message: str | None = None):
        super().__init__(
            message
            or f"{entity_type} {entity_id} is not the current version; reload and retry"
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class InvalidVersionDataError(ABFIError, ValueError):
    code = "INVALID_VERSION_DATA"


class UnknownEntityTypeError(ABFIError, ValueError):
    code = "UNKNOWN_ENTITY_TYPE"

    def __init__(self, entity_type):
        super().__init__(f"Invalid entity type: {entity_type}")
        self.entity_type = entity_type


class InvalidTransitionError(ABFIError, ValueError):
    code = "INVALID_TRANSITION"

    def __init__(self, resource: str, current_status: str, target: str):
        super().__init__(f"Cannot move {resource} from '{current_status}' to '{target}'")
        self.resource = resource
        self.current_status = current_status
        self.target = target


class PermissionDeniedError(ABFIError):
    code = "PERMISSION_DENIED"


class InvalidInputError(ABFIError, ValueError):
    code = "INVALID_INPUT"
