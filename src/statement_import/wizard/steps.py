"""
Concrete steps of the statement import wizard.

account → extractor → upload (parse) → conflicts (detect + resolve) → review (commit)

Every network-bound action is a coroutine. Failures are recorded on the step
(``step.error``) and re-raised; none of them moves the wizard.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..api_client.client import LedgerApiError, LedgerAPIResponseError
from ..errors import (
    CommitError,
    FetchError,
    ParseError,
    StatementImportError,
    ValidationError,
)
from ..matching.duplicates import DuplicateDetector
from ..review.resolution import ResolutionTracker
from ..review.workflow import ReviewStore
from ..schemas.drafts import DraftTransaction, Resolution
from ..schemas.statement_file import StatementFile, validate_statement_files
from .controller import WizardStep

if TYPE_CHECKING:
    from ..services.commit import CommitResult, CommitStage
    from .context import ImportContext

logger = logging.getLogger(__name__)


class ImportStep(WizardStep):
    """Wizard step bound to an import context."""

    def __init__(self, context: ImportContext) -> None:
        super().__init__()
        self.context = context

    def _fail(self, error: StatementImportError) -> StatementImportError:
        """Record a step-scoped error and hand it back for raising."""
        self.error = error
        return error


class AccountSelectionStep(ImportStep):
    """Pick the account the statement belongs to."""

    id = "account"
    title = "Account"
    description = "Choose the account to import the statement into"

    @property
    def is_valid(self) -> bool:
        return bool(self.context.account_id)

    async def load(self) -> None:
        """Fetch the selectable accounts."""
        try:
            self.context.accounts = await self.context.api.list_accounts()
        except LedgerApiError as e:
            raise self._fail(FetchError("accounts", f"Failed to load accounts: {e}")) from e
        self.error = None

    def select(self, account_id: str) -> None:
        """
        Select the target account.

        Changing the account discards parsed drafts and duplicate-check state,
        both of which are account-specific.

        Raises:
            ValidationError: Empty or unknown account id
        """
        account_id = str(account_id).strip()
        if not account_id:
            raise self._fail(ValidationError("account", "Please select an account"))
        if self.context.accounts and account_id not in {a.id for a in self.context.accounts}:
            raise self._fail(ValidationError("account", f"Unknown account: {account_id}"))

        if account_id != self.context.account_id:
            self.context.account_id = account_id
            self.context.clear_pipeline()
        self.error = None


class ExtractorSelectionStep(ImportStep):
    """Pick the server-side extractor matching the statement layout."""

    id = "extractor"
    title = "Statement type"
    description = "Choose the bank and statement format"

    @property
    def is_valid(self) -> bool:
        return bool(self.context.extractor)

    async def load(self) -> None:
        """Fetch the available extractors."""
        try:
            self.context.extractors = await self.context.api.list_extractors()
        except LedgerApiError as e:
            raise self._fail(FetchError("extractors", f"Failed to load extractors: {e}")) from e
        self.error = None

    def select(self, name: str) -> None:
        """
        Select an extractor. Changing it discards drafts parsed by the old one.

        Raises:
            ValidationError: Empty or unknown extractor name
        """
        name = str(name).strip()
        if not name:
            raise self._fail(ValidationError("extractor", "Please select a statement type"))
        if self.context.extractors and name not in {e.name for e in self.context.extractors}:
            raise self._fail(ValidationError("extractor", f"Unknown extractor: {name}"))

        if name != self.context.extractor:
            self.context.extractor = name
            self.context.clear_pipeline()
        self.error = None


class FileUploadStep(ImportStep):
    """Select the statement file and have the extractor parse it."""

    id = "upload"
    title = "Upload"
    description = "Upload the PDF statement"

    @property
    def is_valid(self) -> bool:
        return (
            self.error is None
            and self.context.statement is not None
            and bool(self.context.drafts)
        )

    def select_files(self, files: Sequence[StatementFile]) -> StatementFile:
        """
        Validate the selection locally (no network) and keep the file.

        Raises:
            ValidationError: ``field="file"`` when the selection is rejected
        """
        self.context.clear_pipeline()
        try:
            statement = validate_statement_files(files, self.context.config)
        except ValidationError as e:
            self.context.statement = None
            raise self._fail(e)

        self.context.statement = statement
        self.error = None
        logger.debug("Selected statement %s (%d bytes)", statement.name, statement.size)
        return statement

    def select_file(self, statement: StatementFile) -> StatementFile:
        return self.select_files([statement])

    async def upload(self) -> list[DraftTransaction]:
        """
        Send the statement to the extractor.

        Raises:
            ValidationError: No account or no file selected
            ParseError: The extractor rejected or failed on the file
        """
        if not self.context.account_id:
            raise self._fail(ValidationError("account", "Please select an account"))
        if self.context.statement is None:
            raise self._fail(ValidationError("file", "Please select a file to upload"))

        self.context.clear_pipeline()
        try:
            drafts = await self.context.api.parse_statement(
                self.context.statement,
                self.context.account_id,
                self.context.extractor,
            )
        except LedgerAPIResponseError as e:
            logger.warning("Extractor rejected %s: %s", self.context.statement.name, e.message)
            raise self._fail(ParseError(e.message, e.status_code)) from e
        except LedgerApiError as e:
            logger.warning("Statement upload failed: %s", e)
            raise self._fail(ParseError(str(e))) from e

        if not drafts:
            raise self._fail(ParseError("No transactions were found in the statement"))

        self.context.drafts = drafts
        self.error = None
        return drafts


class ConflictCheckStep(ImportStep):
    """Detect probable duplicates and collect keep-existing/keep-both decisions."""

    id = "conflicts"
    title = "Duplicates"
    description = "Review transactions that may already exist in the account"

    def __init__(self, context: ImportContext, detector: DuplicateDetector) -> None:
        super().__init__(context)
        self.detector = detector
        self._detected_for: tuple[object, object] | None = None
        self._handoff: tuple[ResolutionTracker, int] | None = None

    @property
    def tracker(self) -> ResolutionTracker | None:
        return self.context.tracker

    def is_current(self) -> bool:
        """Detection ran on the current draft and existing sequences."""
        ctx = self.context
        return (
            ctx.tracker is not None
            and self._detected_for is not None
            and self._detected_for[0] is ctx.drafts
            and self._detected_for[1] is ctx.existing
        )

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.is_current() and self.context.tracker.is_resolved()

    async def check(self) -> ResolutionTracker:
        """
        Fetch the account's transactions and run detection.

        A failed fetch never counts as "no conflicts": the step stays invalid
        until a retry succeeds.

        Raises:
            ValidationError: No drafts to check
            FetchError: Existing transactions could not be loaded
        """
        if self.context.drafts is None:
            raise self._fail(
                ValidationError("file", "Upload a statement before checking for duplicates")
            )

        self.context.clear_conflicts()
        self._detected_for = None
        try:
            existing = await self.context.api.list_transactions(self.context.account_id)
        except LedgerApiError as e:
            logger.error("Existing transactions for account %s unavailable: %s", self.context.account_id, e)
            raise self._fail(
                FetchError("transactions", f"Failed to fetch existing transactions: {e}")
            ) from e

        self.context.existing = existing
        self.error = None
        return self.refresh()

    def refresh(self) -> ResolutionTracker:
        """Re-run detection on the current inputs without fetching."""
        ctx = self.context
        if ctx.drafts is None or ctx.existing is None:
            raise self._fail(
                ValidationError("transactions", "Existing transactions have not been loaded")
            )

        annotations = self.detector.detect(ctx.drafts, ctx.existing)
        ctx.tracker = ResolutionTracker(ctx.drafts, annotations)
        ctx.review = None
        self._detected_for = (ctx.drafts, ctx.existing)
        self._handoff = None
        return ctx.tracker

    def set_resolution(self, index: int, value: Resolution | str) -> None:
        if self.context.tracker is None:
            raise self._fail(
                ValidationError("transactions", "Run the duplicate check before resolving conflicts")
            )
        self.context.tracker.set_resolution(index, value)

    def on_leave_forward(self) -> None:
        """Hand the finalized drafts over to the review store.

        Review edits survive back-and-forth navigation as long as no
        resolution changed in between.
        """
        tracker = self.context.tracker
        if tracker is None:
            return
        if self.context.review is not None and self._handoff == (tracker, tracker.revision):
            return

        self.context.review = ReviewStore(
            tracker.finalize(),
            categories=self.context.categories,
            api=self.context.api,
        )
        self._handoff = (tracker, tracker.revision)


class ReviewStep(ImportStep):
    """Edit and categorize the surviving drafts, then commit the batch."""

    id = "review"
    title = "Review"
    description = "Edit, categorize or ignore transactions before importing"

    def __init__(self, context: ImportContext, commit_stage: CommitStage) -> None:
        super().__init__(context)
        self.commit_stage = commit_stage
        self.result: CommitResult | None = None

    @property
    def store(self) -> ReviewStore | None:
        return self.context.review

    @property
    def is_valid(self) -> bool:
        return self.context.review is not None and self.context.review.to_import > 0

    @property
    def committed(self) -> bool:
        return self.result is not None

    async def commit(self) -> CommitResult:
        """
        Submit the non-ignored drafts as one batch.

        Raises:
            ValidationError: Nothing reviewed, or nothing left to import
            CommitError: The batch was not applied (drafts are kept for a retry)
        """
        if self.context.review is None:
            raise self._fail(ValidationError("transactions", "There are no transactions to review"))
        if self.committed:
            raise self._fail(CommitError("This import has already been committed"))

        try:
            result = await self.commit_stage.commit(
                self.context.account_id, self.context.review.drafts
            )
        except (ValidationError, CommitError) as e:
            raise self._fail(e)

        self.result = result
        self.error = None
        return result
