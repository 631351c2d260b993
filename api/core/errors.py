"""
Error taxonomy shared by the storage and service layers.

Every failure carries an explicit `ErrorKind` so callers never have to guess
the category from message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONNECTIVITY = "connectivity"


# HTTP status per error kind. The router is the only place that reads this.
HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONNECTIVITY: 503,
}


class UserStoreError(RuntimeError):
    """
    Raised by storage backends for failures the caller should report.

    Not-found is not an exception at this level: lookups return None.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message
