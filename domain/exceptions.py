from __future__ import annotations


class DomainError(Exception):
    """Base class for recoverable errors raised by the domain layer."""


class InvalidCredentialError(DomainError):
    """Password does not satisfy the minimum length rule."""


class InvalidUsernameError(DomainError):
    pass


class AuthenticationFailedError(DomainError):
    """Username/password pair does not match a known record."""


class DuplicateUsernameError(DomainError):
    pass


class RecordNotFoundError(DomainError):
    """
    A persisted record could not be found or could not be decoded.

    Both cases are reported the same way so that a corrupt file never
    takes down the directory.
    """


class RecordStoreError(DomainError):
    """The record store could not write a record."""
