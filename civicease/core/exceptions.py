"""
Domain errors raised by the service layer.

Each error carries the HTTP status it is rendered with; the handlers in
``civicease.main`` turn them into the ``{"error": "<message>"}`` envelope.
"""


class CivicEaseError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class UnauthorizedError(CivicEaseError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(CivicEaseError):
    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class NotFoundError(CivicEaseError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class ValidationError(CivicEaseError):
    status_code = 400

    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message)


class InvalidTransitionError(ValidationError):
    """A lifecycle action was attempted from a status that does not allow it."""

    def __init__(self, action: str, current_status: str):
        super().__init__(f"Cannot {action.replace('_', ' ')} a complaint with status '{current_status}'")
        self.action = action
        self.current_status = current_status


class StorageError(CivicEaseError):
    status_code = 500
