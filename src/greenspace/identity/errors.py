"""Identity service errors.

Each error carries a stable ``name`` that clients can switch on, and a
message suitable for showing to the user as-is.
"""

from __future__ import annotations


class IdentityError(Exception):
    """Base class for all identity service errors."""

    name = "IdentityError"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidParameterError(IdentityError):
    name = "InvalidParameterException"


class InvalidPasswordError(IdentityError):
    name = "InvalidPasswordException"


class UsernameExistsError(IdentityError):
    name = "UsernameExistsException"
    status_code = 409


class UserNotFoundError(IdentityError):
    name = "UserNotFoundException"
    status_code = 404


class UserNotConfirmedError(IdentityError):
    name = "UserNotConfirmedException"
    status_code = 403


class NotAuthorizedError(IdentityError):
    name = "NotAuthorizedException"
    status_code = 401


class CodeMismatchError(IdentityError):
    name = "CodeMismatchException"


class ExpiredCodeError(IdentityError):
    name = "ExpiredCodeException"
