# app/errors.py
"""Exceptions shared by the backend client, the auth guard and the views."""


class BackendError(Exception):
    """A call to the rental backend failed.

    ``message`` is what the user sees. ``remote_message`` is the backend's own
    ``message`` field, or None when it sent none. ``errors`` carries the
    per-field list from the backend error envelope.
    """

    def __init__(self, message, status_code=None, errors=None, remote_message=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []
        self.remote_message = remote_message


class UnauthorizedError(BackendError):
    """The backend answered 401; the current session is no longer valid."""

    def __init__(self, remote_message=None, errors=None):
        super().__init__(
            remote_message or "Session expired, please log in again",
            status_code=401,
            errors=errors,
            remote_message=remote_message,
        )


class FormError(Exception):
    """Local business validation failure, reported without calling the backend."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class QuotationError(FormError):
    """A quotation editor action was refused."""
