"""
Explicit state shared by the import steps.

Everything a step needs from "outside" (selected account, extractor, file,
parsed drafts, fetched transactions) lives here and is passed to each step,
so a session can be rebuilt from fabricated inputs in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..config import ImportConfig

if TYPE_CHECKING:
    from ..api_client.base import LedgerApi
    from ..review.resolution import ResolutionTracker
    from ..review.workflow import ReviewStore
    from ..schemas.drafts import (
        Account,
        Category,
        DraftTransaction,
        ExistingTransaction,
        Extractor,
    )
    from ..schemas.statement_file import StatementFile


@dataclass
class ImportContext:
    """State of one import session (in memory only)."""

    api: LedgerApi
    config: ImportConfig = field(default_factory=ImportConfig)

    # Reference data
    accounts: list[Account] = field(default_factory=list)
    extractors: list[Extractor] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)

    # Selections
    account_id: str = ""
    extractor: str = ""
    statement: StatementFile | None = None

    # Pipeline data; None means "not available yet"
    drafts: list[DraftTransaction] | None = None
    existing: list[ExistingTransaction] | None = None
    tracker: ResolutionTracker | None = None
    review: ReviewStore | None = None

    def clear_pipeline(self) -> None:
        """Drop parsed drafts and everything derived from them."""
        self.drafts = None
        self.clear_conflicts()

    def clear_conflicts(self) -> None:
        """Drop fetched transactions, detection results and review state."""
        self.existing = None
        self.tracker = None
        self.review = None

    def account_name(self) -> str | None:
        for account in self.accounts:
            if account.id == self.account_id:
                return account.name
        return None

    def extractor_display_name(self) -> str | None:
        for extractor in self.extractors:
            if extractor.name == self.extractor:
                return extractor.display_name
        return None
