"""Error taxonomy for user record operations.

Each error carries the HTTP status the API layer reports it with, so the
routers never translate error kinds themselves.
"""


class UserStoreError(Exception):
    """Base class for all user record errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(UserStoreError):
    """One or more field-level problems with a submitted record."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: list[str], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors)


class NotFoundError(UserStoreError):
    """The referenced user id has no corresponding row."""

    status_code = 404
    default_message = "User not found"

    def __init__(self, user_id: str | None = None, message: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


class ConflictError(UserStoreError):
    """A write would violate email uniqueness."""

    status_code = 409
    default_message = "Email already exists"

    def __init__(self, email: str | None = None, message: str | None = None) -> None:
        super().__init__(message)
        self.email = email


class StorageError(UserStoreError):
    """Connection failure, timeout, or any unexpected backend fault."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, detail: str, message: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail
