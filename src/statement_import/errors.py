"""
Error taxonomy for the import pipeline.

- ValidationError: local problems (missing file/account, bad file, empty commit).
  Blocks step advancement, resolved purely client-side.
- ParseError: the extractor rejected or failed on the statement.
- FetchError: existing transactions, categories, accounts or extractors unavailable.
- CommitError: the final batch write failed. Reviewed drafts are kept.

ParseError and FetchError are step-scoped: the user retries the same step.
"""

from typing import Any


class StatementImportError(Exception):
    """Base exception for all import pipeline errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(StatementImportError):
    """Local validation failure tied to a single field."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message, {"field": field})


class NothingToImportError(ValidationError):
    """Commit refused locally: every draft is ignored."""

    def __init__(self, message: str = "Nothing to import"):
        super().__init__("transactions", message)


class ParseError(StatementImportError):
    """The statement could not be turned into draft transactions."""

    kind = "ImportParseFailed"

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason, {"kind": self.kind, "status_code": status_code})


class FetchError(StatementImportError):
    """A read from the ledger API failed."""

    def __init__(self, resource: str, message: str):
        self.resource = resource
        super().__init__(message, {"resource": resource})


class CommitError(StatementImportError):
    """The batch write was not applied."""

    pass
