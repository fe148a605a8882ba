"""Batch commit of reviewed drafts.

Builds the bulk payload from the non-ignored drafts and sends it in exactly one
API call. The batch is treated as atomic: no splitting, no per-row retry. On
failure the caller's drafts are untouched so the user can retry as-is.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from statement_import.api_client.client import LedgerApiError
from statement_import.errors import CommitError, NothingToImportError, ValidationError
from statement_import.schemas.drafts import DraftTransaction, TransactionType

if TYPE_CHECKING:
    from statement_import.api_client.base import LedgerApi

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """Outcome of a successful batch commit."""

    count: int
    transaction_ids: list[int] = field(default_factory=list)


def draft_to_payload(draft: DraftTransaction) -> dict:
    """Serialize one draft for the bulk endpoint.

    Wizard-only state (``ignored``, conflict annotations) is not included.
    The amount sign follows the type: expenses negative, income positive.
    """
    magnitude = abs(draft.amount)
    amount = -magnitude if draft.type == TransactionType.EXPENSE else magnitude
    return {
        "date": draft.day.isoformat(),
        "amount": float(amount),
        "type": draft.type.value,
        "description": draft.description,
        "categoryIds": list(draft.category_ids),
    }


def build_payload(drafts: Sequence[DraftTransaction]) -> list[dict]:
    """Non-ignored drafts, in original order, as bulk payload entries."""
    return [draft_to_payload(d) for d in drafts if not d.ignored]


def _created_ids(created: object) -> list[int]:
    """Ids of the created transactions. Runs after the batch is applied and never raises."""
    if not isinstance(created, list):
        return []

    ids: list[int] = []
    for tx in created:
        if not isinstance(tx, dict):
            continue
        raw_id = tx.get("ID", tx.get("id"))
        try:
            ids.append(int(raw_id))
        except (TypeError, ValueError):
            logger.warning("Ignoring created transaction with unreadable id %r", raw_id)
    return ids


class CommitStage:
    """Sends the reviewed batch to the ledger API.

    Usage:
        stage = CommitStage(api)
        result = await stage.commit(account_id, store.drafts)
    """

    def __init__(self, api: LedgerApi) -> None:
        self.api = api
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def commit(self, account_id: str, drafts: Sequence[DraftTransaction]) -> CommitResult:
        """Commit all non-ignored drafts as one batch.

        Raises:
            ValidationError: No account selected
            NothingToImportError: Every draft is ignored (no call is made)
            CommitError: A commit is already running, or the API call failed
        """
        if not account_id:
            raise ValidationError("account", "Please select an account")

        payload = build_payload(drafts)
        if not payload:
            logger.info("Commit refused: all %d drafts are ignored", len(drafts))
            raise NothingToImportError()

        if self._in_flight:
            raise CommitError("A commit for this import is already in progress")

        self._in_flight = True
        try:
            response = await self.api.commit_transactions(account_id, payload)
        except LedgerApiError as e:
            logger.error("Batch commit of %d transactions failed: %s", len(payload), e)
            raise CommitError(f"Failed to save transactions: {e}") from e
        finally:
            self._in_flight = False

        transaction_ids = _created_ids(response.get("transactions"))
        count = response.get("count")
        if isinstance(count, bool) or not isinstance(count, int):
            count = len(payload)

        logger.info("Committed %d transactions to account %s", count, account_id)
        return CommitResult(count=count, transaction_ids=transaction_ids)
