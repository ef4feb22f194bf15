"""Errors raised by the matching engine and the donation state machine."""


class DonationError(Exception):
    """Base class for all domain errors."""


class InvalidArgument(DonationError):
    """Caller error: bad radius, malformed coordinate. Not retried."""


class InvalidCoordinate(InvalidArgument):
    """Latitude outside [-90, 90] or longitude outside [-180, 180]."""


class DonationNotFound(DonationError):
    pass


class InvalidTransition(DonationError):
    """The requested event is not an edge from the donation's current status."""


class Forbidden(DonationError):
    """The actor's role or identity may not perform this transition."""


class AlreadyExpired(DonationError):
    pass


class ConflictingTransition(DonationError):
    """Another writer changed the status first. Re-fetch and decide whether to retry."""
