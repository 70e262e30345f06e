"""Domain error types."""


class DomainError(Exception):
    """Base domain error."""
    pass


class PersistenceError(DomainError):
    """Storage unavailable or write conflict."""
    def __init__(self, message: str = "Storage operation failed"):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Resource not found."""
    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = str(identifier)
        super().__init__(f"{resource} with id {identifier} not found")


class InvalidStateError(DomainError):
    """Operation attempted on a session that no longer accepts it."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConflictError(DomainError):
    """Resource conflict error."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthorizationError(DomainError):
    """Authorization error."""
    def __init__(self, message: str = "Not authorized"):
        self.message = message
        super().__init__(message)


class ValidationError(DomainError):
    """Validation error."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
