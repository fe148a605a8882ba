"""Duplicate detection for imported statement drafts.

A draft is a probable duplicate of an existing account transaction when both
fall on the same calendar day and their amounts differ by less than one cent.
Description and type are not compared. Every flagged pair is shown to the
user, who can override it.

Detection is a pure function of (drafts, existing). It is always recomputed in
full when either input changes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import TYPE_CHECKING

from statement_import.schemas.drafts import (
    ConflictAnnotation,
    DraftTransaction,
    ExistingTransaction,
    Resolution,
)

if TYPE_CHECKING:
    from statement_import.config import ImportConfig

logger = logging.getLogger(__name__)

# Currency-unit epsilon absorbing float/rounding noise from the extractor
DEFAULT_AMOUNT_TOLERANCE = Decimal("0.01")


def same_calendar_day(draft: DraftTransaction, existing: ExistingTransaction) -> bool:
    """Return True if both transactions fall on the same calendar day."""
    return draft.day == existing.day


def amounts_match(
    draft_amount: Decimal,
    existing_amount: Decimal,
    tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE,
) -> bool:
    """Return True if ``|draft - existing| < tolerance`` (strict)."""
    return abs(draft_amount - existing_amount) < tolerance


def is_probable_duplicate(
    draft: DraftTransaction,
    existing: ExistingTransaction,
    tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE,
) -> bool:
    """Matching rule: same calendar day AND amounts within tolerance."""
    return same_calendar_day(draft, existing) and amounts_match(
        draft.amount, existing.amount, tolerance
    )


def find_conflicts(
    drafts: Sequence[DraftTransaction],
    existing: Sequence[ExistingTransaction],
    tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE,
) -> list[ConflictAnnotation]:
    """Annotate every draft with the existing transactions it may duplicate.

    Args:
        drafts: Draft sequence in extractor order.
        existing: Existing account transactions in fetch order.
        tolerance: Amount epsilon.

    Returns:
        One annotation per draft, positionally aligned with ``drafts``.
        ``conflicts_with`` keeps fetch order; annotations with conflicts are
        seeded to KEEP_EXISTING, the rest are UNSET.
    """
    annotations: list[ConflictAnnotation] = []

    for draft in drafts:
        matches = tuple(e for e in existing if is_probable_duplicate(draft, e, tolerance))
        annotations.append(
            ConflictAnnotation(
                conflicts_with=matches,
                resolution=Resolution.KEEP_EXISTING if matches else Resolution.UNSET,
            )
        )

    return annotations


class DuplicateDetector:
    """Compares statement drafts against the account's stored transactions.

    Usage:
        detector = DuplicateDetector(config.importing)
        annotations = detector.detect(drafts, existing)
    """

    def __init__(self, config: ImportConfig | None = None) -> None:
        self.tolerance = config.amount_tolerance if config else DEFAULT_AMOUNT_TOLERANCE

    def detect(
        self,
        drafts: Sequence[DraftTransaction],
        existing: Sequence[ExistingTransaction],
    ) -> list[ConflictAnnotation]:
        """Run full detection and log a summary."""
        annotations = find_conflicts(drafts, existing, self.tolerance)
        conflicted = sum(1 for a in annotations if a.has_conflicts)

        if conflicted:
            logger.info(
                "Duplicate check: %d of %d drafts match existing transactions (%d existing)",
                conflicted,
                len(drafts),
                len(existing),
            )
        else:
            logger.info(
                "Duplicate check: no conflicts among %d drafts (%d existing)",
                len(drafts),
                len(existing),
            )

        return annotations
