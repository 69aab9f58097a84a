"""Domain-specific exceptions for ledger services."""


class LedgerServiceError(Exception):
    """Base exception for ledger services."""
    pass


class AgentNotFoundError(LedgerServiceError):
    """Raised when agent does not exist."""
    pass
