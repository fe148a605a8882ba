"""
SSOT (Single Source of Truth) schemas for the import pipeline.

These canonical schemas are the ONLY models used across all modules.
No duplicated "near-same" models allowed.
"""

from .drafts import (
    Account,
    Category,
    ConflictAnnotation,
    DraftTransaction,
    ExistingTransaction,
    Extractor,
    Resolution,
    TransactionType,
    calendar_day,
    check_position,
    parse_amount,
    parse_datetime,
    parse_transaction_type,
)
from .statement_file import PDF_MAGIC, StatementFile, validate_statement_files

__all__ = [
    # Draft model (canonical pipeline shape)
    "DraftTransaction",
    "ExistingTransaction",
    "ConflictAnnotation",
    "Resolution",
    "TransactionType",
    # Reference data
    "Account",
    "Category",
    "Extractor",
    # Parsing helpers
    "calendar_day",
    "parse_amount",
    "parse_datetime",
    "parse_transaction_type",
    "check_position",
    # Statement upload
    "StatementFile",
    "PDF_MAGIC",
    "validate_statement_files",
]
