"""Duplicate detection between statement drafts and stored account transactions."""

from statement_import.matching.duplicates import (
    DEFAULT_AMOUNT_TOLERANCE,
    DuplicateDetector,
    amounts_match,
    find_conflicts,
    is_probable_duplicate,
    same_calendar_day,
)

__all__ = [
    "DuplicateDetector",
    "DEFAULT_AMOUNT_TOLERANCE",
    "amounts_match",
    "find_conflicts",
    "is_probable_duplicate",
    "same_calendar_day",
]
