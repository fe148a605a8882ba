"""
Import session orchestration.

Wires the context, the five steps and the controller together and exposes the
wizard as a small async API:

    session = ImportSession(api, config.importing)
    await session.start()
    session.select_account("42"); session.next()
    session.select_extractor("ing"); session.next()
    session.select_file(path); await session.upload(); session.next()
    await session.check_conflicts(); session.next()
    result = await session.commit()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from statement_import.api_client.client import LedgerApiError
from statement_import.config import ImportConfig
from statement_import.errors import FetchError, ValidationError
from statement_import.matching.duplicates import DuplicateDetector
from statement_import.schemas.statement_file import StatementFile
from statement_import.services.commit import CommitStage
from statement_import.wizard.context import ImportContext
from statement_import.wizard.controller import WizardController, WizardStep
from statement_import.wizard.steps import (
    AccountSelectionStep,
    ConflictCheckStep,
    ExtractorSelectionStep,
    FileUploadStep,
    ReviewStep,
)

if TYPE_CHECKING:
    from statement_import.api_client.base import LedgerApi
    from statement_import.review.resolution import ResolutionTracker
    from statement_import.review.workflow import ReviewStore
    from statement_import.schemas.drafts import Category, DraftTransaction, Resolution
    from statement_import.services.commit import CommitResult

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """What the user has selected so far."""

    account_name: str | None
    extractor_name: str | None
    file_name: str | None
    draft_count: int


class ImportSession:
    """
    One statement import, from account selection to commit.

    State lives in memory only. cancel() drops everything except the loaded
    reference data (accounts, extractors, categories).
    """

    def __init__(self, api: LedgerApi, config: ImportConfig | None = None):
        self.api = api
        self.config = config or ImportConfig()
        self._build()

    def _build(self) -> None:
        self.context = ImportContext(api=self.api, config=self.config)
        self.account_step = AccountSelectionStep(self.context)
        self.extractor_step = ExtractorSelectionStep(self.context)
        self.upload_step = FileUploadStep(self.context)
        self.conflict_step = ConflictCheckStep(self.context, DuplicateDetector(self.config))
        self.review_step = ReviewStep(self.context, CommitStage(self.api))
        self.controller = WizardController(
            [
                self.account_step,
                self.extractor_step,
                self.upload_step,
                self.conflict_step,
                self.review_step,
            ]
        )

    # ------------------------------------------------------------------
    # Navigation

    @property
    def current_step(self) -> WizardStep:
        return self.controller.current_step

    @property
    def current_index(self) -> int:
        return self.controller.current_index

    def next(self) -> bool:
        return self.controller.advance()

    def back(self) -> bool:
        return self.controller.retreat()

    def go_to(self, index: int) -> bool:
        return self.controller.jump_to(index)

    # ------------------------------------------------------------------
    # Reference data

    async def start(self) -> None:
        """Load accounts, extractors and categories."""
        await self.account_step.load()
        await self.extractor_step.load()
        await self.load_categories()
        logger.info(
            "Import session ready: %d accounts, %d extractors, %d categories",
            len(self.context.accounts),
            len(self.context.extractors),
            len(self.context.categories),
        )

    async def load_categories(self) -> list[Category]:
        try:
            self.context.categories = await self.api.list_categories()
        except LedgerApiError as e:
            raise FetchError("categories", f"Failed to load categories: {e}") from e
        return self.context.categories

    # ------------------------------------------------------------------
    # Step actions

    def select_account(self, account_id: str) -> None:
        self.account_step.select(account_id)

    def select_extractor(self, name: str) -> None:
        self.extractor_step.select(name)

    def select_file(self, source: StatementFile | Path | str) -> StatementFile:
        """Pick the statement to upload, from memory or from disk."""
        if isinstance(source, StatementFile):
            statement = source
        else:
            path = Path(source)
            if not path.is_file():
                raise ValidationError("file", f"File not found: {path}")
            statement = StatementFile.from_path(path)
        return self.upload_step.select_file(statement)

    async def upload(self) -> list[DraftTransaction]:
        return await self.upload_step.upload()

    async def check_conflicts(self) -> ResolutionTracker:
        return await self.conflict_step.check()

    def set_resolution(self, index: int, value: Resolution | str) -> None:
        self.conflict_step.set_resolution(index, value)

    @property
    def tracker(self) -> ResolutionTracker | None:
        return self.context.tracker

    @property
    def review(self) -> ReviewStore | None:
        return self.context.review

    async def add_category(
        self,
        name: str,
        category_type: str | None = None,
        draft_index: int | None = None,
    ) -> Category:
        """Create a category from the review step and keep it for later hand-offs."""
        store = self._require_review()
        category = await store.add_category(name, category_type, draft_index)
        self.context.categories = list(store.categories)
        return category

    async def commit(self) -> CommitResult:
        return await self.review_step.commit()

    def _require_review(self) -> ReviewStore:
        if self.context.review is None:
            raise ValidationError("transactions", "There are no transactions to review")
        return self.context.review

    # ------------------------------------------------------------------

    def summary(self) -> ImportSummary:
        ctx = self.context
        return ImportSummary(
            account_name=ctx.account_name(),
            extractor_name=ctx.extractor_display_name(),
            file_name=ctx.statement.name if ctx.statement else None,
            draft_count=len(ctx.drafts) if ctx.drafts else 0,
        )

    def cancel(self) -> None:
        """Abandon the import without committing anything."""
        accounts = self.context.accounts
        extractors = self.context.extractors
        categories = self.context.categories

        self._build()
        self.context.accounts = accounts
        self.context.extractors = extractors
        self.context.categories = categories
        logger.info("Import cancelled")
