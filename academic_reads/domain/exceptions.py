"""Domain error taxonomy.

Services raise these; the API layer translates them into HTTP responses.
"""


class DomainError(Exception):
    """Base class for errors that cross a component boundary."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed or out-of-range input. Client-correctable, never retried."""


class UnauthenticatedError(DomainError):
    """Missing, invalid, expired or revoked session."""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class InvalidCredentialsError(DomainError):
    """Login failed. Carries the same message whatever the cause."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class ConflictError(DomainError):
    """A write collided with a uniqueness constraint in the store."""


class EmailTakenError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Email already exists")


class NotFoundError(DomainError):
    """A referenced entity does not exist."""


class MetadataNotFoundError(NotFoundError):
    """The registry has no usable record for an identifier."""

    def __init__(self, identifier: str):
        super().__init__("Could not find paper with this DOI. Please enter details manually.")
        self.identifier = identifier


class TransientError(DomainError):
    """An external dependency failed. Safe to retry."""


class InternalError(DomainError):
    """Unexpected failure. Callers only ever see a generic message."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
