class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NoActiveAttendance(DomainError):
    """Raised when an action needs today's record and none exists."""


class AlreadyClockedIn(DomainError):
    """Raised on a second clock-in for the same user, workspace and day."""


class InvalidTransition(DomainError):
    """Raised when an action is not legal from the record's current status."""


class ShiftNotFound(DomainError):
    """Raised when no shift can be resolved at clock-in."""


class StoreConflict(DomainError):
    """Raised when a concurrent mutation won the race for the same record."""


class StoreUnavailable(DomainError):
    """Raised when the underlying store call fails."""
