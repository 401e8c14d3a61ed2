class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the stable identifier returned to API clients and
    ``http_status`` the status the controllers answer with.
    """

    code = "domain_error"
    http_status = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls) -> str:
        return cls.code.replace("_", " ").capitalize()


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"
    http_status = 422


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "forbidden"
    http_status = 403


class NotFoundError(DomainError):
    code = "not_found"
    http_status = 404


class AlreadyClockedIn(DomainError):
    code = "already_clocked_in"
    http_status = 409


class NotClockedIn(DomainError):
    code = "not_clocked_in"
    http_status = 409


class AlreadyClockedOut(DomainError):
    code = "already_clocked_out"
    http_status = 409


class WorkLogExists(DomainError):
    """A manual record targets a day that already has punches; correct it instead."""

    code = "work_log_exists"
    http_status = 409


class InvalidClockOutTime(DomainError):
    code = "invalid_clock_out_time"
    http_status = 422


class InvalidLocation(DomainError):
    code = "invalid_location"
    http_status = 422


class LocationUnavailable(DomainError):
    code = "location_unavailable"
    http_status = 422


class PunchOnApprovedLeave(DomainError):
    """Only raised when the leave-punch policy is ``reject``."""

    code = "punch_on_approved_leave"
    http_status = 422


class UnresolvedCalendar(DomainError):
    """No working-day configuration covers the scope.

    Never surfaced to clients: the resolver logs it and treats the day as
    non-working.
    """

    code = "unresolved_calendar"
    http_status = 500


class DuplicateLedgerEntry(Exception):
    """Storage-level uniqueness violation on (staff_member_id, log_date)."""
