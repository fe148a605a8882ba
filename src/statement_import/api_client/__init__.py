"""
Ledger REST API client.

Provides:
- Upload a statement to the server-side extractor (draft transactions)
- List accounts, extractors, categories and account transactions
- Create categories and categorization rules
- Commit a reviewed batch (POST .../transactions/bulk)

Treats API errors as loud failures with actionable messages.
"""

from .base import LedgerApi
from .client import (
    LedgerApiClient,
    LedgerApiError,
    LedgerAPIResponseError,
    LedgerConnectionError,
)

__all__ = [
    "LedgerApi",
    "LedgerApiClient",
    "LedgerApiError",
    "LedgerAPIResponseError",
    "LedgerConnectionError",
]
