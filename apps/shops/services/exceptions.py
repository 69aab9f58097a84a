"""Domain-specific exceptions for shops services."""


class ShopsServiceError(Exception):
    """Base exception for shops services."""
    pass


class NotFoundError(ShopsServiceError):
    """Raised when a reference does not resolve in any store."""
    pass


class ShopNotFoundError(NotFoundError):
    """Raised when a live shop does not exist."""
    pass


class RenewalCandidateNotFoundError(NotFoundError):
    """Raised when a holding-area entry does not exist."""
    pass


class CategoryNotFoundError(NotFoundError):
    """Raised when a category slug does not exist."""
    pass


class InvalidStateError(ShopsServiceError):
    """Raised when a transition is not allowed from the current state."""
    pass


class UnauthorizedActionError(ShopsServiceError):
    """Raised when the acting agent does not own the shop."""
    pass


class ShopValidationError(ShopsServiceError):
    """Raised when input data is malformed."""
    pass
