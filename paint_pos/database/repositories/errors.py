# database/repositories/errors.py


class DomainError(Exception):
    """Domain-level error the HTTP layer / shell can surface to the user."""
    status_code = 400

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """Bad input: missing fields, wrong types, out-of-range amounts."""
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Request is well-formed but clashes with current state (stock, references, open bills)."""
    status_code = 409
