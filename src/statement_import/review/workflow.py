"""
Review workflow management.

The review store owns the authoritative draft sequence during the review step:
field edits, ignore flags and ad-hoc category creation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from ..api_client.client import LedgerApiError
from ..errors import FetchError, ValidationError
from ..schemas.drafts import (
    Category,
    DraftTransaction,
    TransactionType,
    check_position,
    parse_amount,
    parse_datetime,
    parse_transaction_type,
)

if TYPE_CHECKING:
    from ..api_client.base import LedgerApi

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("date", "amount", "description", "type", "category_ids", "ignored")


class ReviewStore:
    """
    Mutable draft collection for the review step.

    Responsibilities:
    - Apply single-field edits
    - Track which drafts are ignored
    - Create categories on the fly and keep category choices type-consistent
    """

    def __init__(
        self,
        drafts: Sequence[DraftTransaction],
        categories: Iterable[Category] = (),
        api: LedgerApi | None = None,
    ):
        """Initialize with the finalized drafts and the category universe."""
        self._drafts = [draft.copy() for draft in drafts]
        self._categories = list(categories)
        self.api = api

    def __len__(self) -> int:
        return len(self._drafts)

    @property
    def drafts(self) -> tuple[DraftTransaction, ...]:
        return tuple(self._drafts)

    @property
    def categories(self) -> tuple[Category, ...]:
        return tuple(self._categories)

    @property
    def to_import(self) -> int:
        return sum(1 for d in self._drafts if not d.ignored)

    @property
    def to_ignore(self) -> int:
        return sum(1 for d in self._drafts if d.ignored)

    def draft(self, index: int) -> DraftTransaction:
        return self._drafts[check_position(index, len(self._drafts))]

    def snapshot(self) -> list[DraftTransaction]:
        """Independent copies of the current drafts."""
        return [draft.copy() for draft in self._drafts]

    def categories_for(self, index: int) -> list[Category]:
        """Categories offered for a draft: only those matching its current type."""
        draft_type = self.draft(index).type
        return [c for c in self._categories if c.type == draft_type]

    def set_field(self, index: int, field: str, value: Any) -> DraftTransaction:
        """
        Replace one field of one draft.

        Args:
            index: Draft position
            field: One of date, amount, description, type, category_ids, ignored
            value: New value (strings are coerced for date/amount/type)

        Returns:
            The edited draft

        Raises:
            IndexError: Unknown draft position
            ValueError: Unknown field or uncoercible value
        """
        draft = self.draft(index)

        if field == "amount":
            draft.amount = parse_amount(value)
        elif field == "date":
            draft.date = parse_datetime(value)
        elif field == "description":
            draft.description = "" if value is None else str(value)
        elif field == "type":
            new_type = parse_transaction_type(value)
            if new_type != draft.type:
                draft.type = new_type
                self._prune_stale_categories(index)
        elif field == "category_ids":
            draft.category_ids = [int(cid) for cid in (value or [])]
        elif field == "ignored":
            draft.ignored = bool(value)
        else:
            raise ValueError(f"Field {field!r} is not editable (allowed: {', '.join(EDITABLE_FIELDS)})")

        return draft

    def _prune_stale_categories(self, index: int) -> None:
        """Drop chosen categories whose type no longer matches the draft."""
        draft = self._drafts[index]
        by_id = {c.id: c for c in self._categories}

        kept = [
            cid for cid in draft.category_ids if cid not in by_id or by_id[cid].type == draft.type
        ]
        dropped = len(draft.category_ids) - len(kept)
        if dropped:
            logger.debug(
                "Draft #%d type changed to %s: dropped %d stale categories",
                index,
                draft.type.value,
                dropped,
            )
        draft.category_ids = kept

    def toggle_ignore(self, index: int) -> bool:
        """Flip ``ignored`` for one draft and return the new value."""
        draft = self.draft(index)
        draft.ignored = not draft.ignored
        return draft.ignored

    def set_all_ignored(self, value: bool) -> None:
        for draft in self._drafts:
            draft.ignored = value

    def toggle_all(self) -> bool:
        """
        Ignore everything unless everything is already ignored.

        Returns:
            The value applied to every draft
        """
        all_ignored = len(self._drafts) > 0 and all(d.ignored for d in self._drafts)
        target = not all_ignored
        self.set_all_ignored(target)
        return target

    def _require_api(self) -> LedgerApi:
        if self.api is None:
            raise RuntimeError("ReviewStore was created without an API client")
        return self.api

    async def add_category(
        self,
        name: str,
        category_type: TransactionType | str | None = None,
        draft_index: int | None = None,
    ) -> Category:
        """
        Create a category and add it to the universe.

        When ``draft_index`` is given, the new id is also appended to that
        draft, and the draft's type is the default category type. A category
        of the other type is never attached to the draft.

        Raises:
            IndexError: Unknown draft position
            ValidationError: Empty name, or type differs from the draft's type
            FetchError: The API call failed; no draft is modified
        """
        if not name or not name.strip():
            raise ValidationError("category", "Category name is required")

        draft = self.draft(draft_index) if draft_index is not None else None
        if category_type is None:
            category_type = draft.type if draft else TransactionType.EXPENSE
        cat_type = parse_transaction_type(category_type)
        if draft is not None and cat_type != draft.type:
            raise ValidationError(
                "category",
                f"A {cat_type.value} category cannot be assigned to "
                f"a {draft.type.value} transaction",
            )

        try:
            category = await self._require_api().create_category(name.strip(), cat_type.value)
        except LedgerApiError as e:
            logger.warning("Failed to add category %r: %s", name, e)
            raise FetchError("categories", f"Failed to add category: {e}") from e

        self._categories.append(category)
        if draft is not None and category.id not in draft.category_ids:
            draft.category_ids.append(category.id)

        return category

    async def create_rule_from_draft(self, index: int) -> int:
        """
        Turn a reviewed draft into an exact-description categorization rule.

        The rule is created server-side; locally the draft's categories are
        copied to every draft with the same description and type.

        Returns:
            Number of drafts the categories were applied to

        Raises:
            ValidationError: Draft has no description or no categories
            FetchError: The API call failed; no draft is modified
        """
        source = self.draft(index)
        if not source.description or not source.category_ids:
            raise ValidationError(
                "category_ids",
                "A description and at least one category are required to create a rule",
            )

        try:
            await self._require_api().create_categorization_rule(
                name=f"Auto-rule for: {source.description}",
                value=source.description,
                transaction_type=source.type.value,
                category_id=source.category_ids[0],
            )
        except LedgerApiError as e:
            logger.warning("Failed to create categorization rule: %s", e)
            raise FetchError("categorization_rules", f"Failed to create rule: {e}") from e

        category_ids = list(source.category_ids)
        applied = 0
        for draft in self._drafts:
            if draft.description == source.description and draft.type == source.type:
                draft.category_ids = list(category_ids)
                applied += 1

        logger.info("Categorization rule created and applied to %d drafts", applied)
        return applied
