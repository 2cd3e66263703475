"""
Error types raised by the notes data-access layer.

Each carries the HTTP status the API answers with, so the transport can map
them without knowing which operation failed.
"""


class NotesError(Exception):
    """Base class for every error the data-access layer reports."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(NotesError):
    """A required field is missing or empty. Raised before touching storage."""

    status_code = 400


class NotFoundOrForbidden(NotesError):
    """
    A scoped statement matched no row.

    Covers a missing note, a note owned by someone else and (for updates) a
    soft-deleted note, without telling them apart.
    """

    status_code = 404


class InfrastructureError(NotesError):
    """Any storage failure the layer does not otherwise recognize."""

    status_code = 500
