"""Map domain errors to HTTP errors."""
from fastapi import HTTPException, status

from foodshare.services.errors import (
    AlreadyExpired,
    ConflictingTransition,
    DonationError,
    DonationNotFound,
    Forbidden,
    InvalidArgument,
    InvalidTransition,
)

_STATUS = [
    (DonationNotFound, status.HTTP_404_NOT_FOUND),
    (InvalidArgument, status.HTTP_400_BAD_REQUEST),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (ConflictingTransition, status.HTTP_409_CONFLICT),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (AlreadyExpired, status.HTTP_410_GONE),
]


def to_http(exc: DonationError) -> HTTPException:
    for cls, code in _STATUS:
        if isinstance(exc, cls):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
