# core/errors.py

class FieldVisitError(Exception):
    """Base class for every error raised by the field visit core."""


class AuthorizationDenied(FieldVisitError):
    """The store refused the request for the acting account."""


class NotFound(FieldVisitError):
    """A referenced farmer, field or visit no longer exists."""


class TransientFetchFailure(FieldVisitError):
    """Store or network failure other than an authorization denial."""


class MalformedDocument(TransientFetchFailure):
    """A stored document could not be read into its model."""


class ValidationFailure(FieldVisitError, ValueError):
    """Bad input from a form, or a mutation the data does not allow."""
