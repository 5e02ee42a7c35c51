class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StoreError(DomainError):
    """Raised when the entity store fails to read or write."""


class MalformedRowError(ValueError):
    """Raised by row decoders when a stored row cannot become an entity."""
