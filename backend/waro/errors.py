# Overview: Error taxonomy shared by services and routes.

"""
WarO error taxonomy.

Every error carries a symbolic message key (resolved through waro.i18n at the
HTTP boundary) plus optional diagnostic details. Routes never build error
strings themselves; they raise one of these and the app-level handler renders
{"error": <localized>, "details": <diagnostic>}.

PROPAGATION:
- ValidationError: malformed/missing input, raised before any store access.
- NotFoundError / ConflictError: detected before the first mutating statement.
- InvariantViolation: detected inside the transaction; caller rolls back.
- StoreError: persistence failure; transaction already aborted, never retried.
"""

from __future__ import annotations


class WaroError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message_key: str, details=None, *, suffix: str | None = None):
        super().__init__(message_key if suffix is None else f"{message_key}: {suffix}")
        self.message_key = message_key
        self.details = details
        # Extra, untranslated text appended to the localized message (e.g. field names)
        self.suffix = suffix


class ValidationError(WaroError):
    """400-level input problem."""

    status_code = 400


class NotFoundError(WaroError):
    """Referenced product/sale/store/tenant is absent or soft-deleted."""

    status_code = 404


class ConflictError(WaroError):
    """409-level uniqueness conflict (e.g., duplicate SKU)."""

    status_code = 409


class InvariantViolation(WaroError):
    """A write would break a stock invariant (e.g., negative on-hand)."""

    status_code = 400


class StoreError(WaroError):
    """Connection or transaction failure from the persistence layer."""

    status_code = 500
