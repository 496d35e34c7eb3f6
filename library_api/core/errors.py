"""Error kinds raised by repositories and core functions.

Nothing below the HTTP layer catches these; ``library_api.main`` maps each
kind to a status code in one place.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_DATA = "invalid_data"


class LibraryError(Exception):
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LibraryError):
    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(LibraryError):
    kind = ErrorKind.ALREADY_EXISTS


class InvalidDataError(LibraryError):
    kind = ErrorKind.INVALID_DATA


BOOK_NOT_FOUND = "Book not found"
BOOK_ALREADY_EXISTS = "Book with that ISBN already exists"
USER_NOT_FOUND = "User not found"
USER_ALREADY_EXISTS = "User with that email already exists"
LOAN_NOT_FOUND = "Loan not found"
LOAN_NOT_OPEN = "User does not have the book loaned"
LOAN_ALREADY_EXISTS = "User already has book loaned"
LOAN_DATES_INVALID = "Loan date must be before the return date"
REVIEW_NOT_FOUND = "Review not found"
REVIEW_ALREADY_EXISTS = "Review already exists"
