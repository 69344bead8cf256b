# core/exceptions.py
from __future__ import annotations


class DomainError(Exception):
    """Base for errors the API and CLI turn into a coded response.

    ``code`` is a stable machine-readable string (``TENANT_REQUIRED``,
    ``STATUS_UNKNOWN`` ...); subclasses set ``default_code``.
    """

    default_code: str | None = None

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code or self.default_code or type(self).__name__


class ValidationError(DomainError):
    """Bad input: blank tenant, inverted date window, invalid status."""


class NotFoundError(DomainError):
    pass


class DerivationError(DomainError):
    """A source document whose amount or status cannot become a ledger fact."""

    default_code = "DERIVATION_FAILED"

    def __init__(self, message: str, *, source_id: str | None = None, code: str | None = None):
        super().__init__(message, code=code)
        self.source_id = source_id


class SourceLinkError(DerivationError):
    """The document has no project to post against. Backfill skips these."""

    default_code = "SOURCE_LINK_MISSING"

    def __init__(self, message: str, *, source_id: str | None = None):
        super().__init__(message, source_id=source_id)


__all__ = ["DerivationError", "DomainError", "NotFoundError", "SourceLinkError", "ValidationError"]
