"""
Error taxonomy for the availability and reservation engine.

- ValidationError: bad caller input, recoverable by re-prompting
- PersistenceError: store unreachable, timed out or constraint violated
- NotFoundError: referenced laptop, reservation or restriction is absent
- ConflictError: availability re-check failed at commit time
"""


class RentalError(Exception):
    """Base class for all engine errors."""


class ValidationError(RentalError):
    """
    Invalid caller input.

    Args:
        message: Human-readable summary
        errors: Optional mapping of field name to error message
    """

    def __init__(self, message: str, errors: dict = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class PersistenceError(RentalError):
    """Store failure. The underlying exception is chained as __cause__."""


class NotFoundError(RentalError):
    """Referenced entity does not exist."""


class ConflictError(RentalError):
    """The requested date range was taken before the booking committed."""


class OverlapError(PersistenceError):
    """The store rejected a restriction overlapping an existing one."""
