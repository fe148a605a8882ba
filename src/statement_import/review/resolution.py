"""
Conflict resolution tracking.

Holds the per-draft decision for probable duplicates and flattens the result
into plain drafts for the review step.

Default policy: a conflicted draft is seeded with KEEP_EXISTING. If the user
never touches it, finalize() marks it ignored, i.e. silence means "treat as a
duplicate and do not import". The conflicts step surfaces this to the user.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence

from ..schemas.drafts import (
    ConflictAnnotation,
    DraftTransaction,
    Resolution,
    check_position,
)

logger = logging.getLogger(__name__)

# Values a user may choose; UNSET is reserved for drafts without conflicts
USER_RESOLUTIONS = (Resolution.KEEP_EXISTING, Resolution.KEEP_BOTH)


class ResolutionTracker:
    """
    Owns the draft sequence while conflicts are being resolved.

    Responsibilities:
    - Keep one annotation per draft (positionally aligned)
    - Restrict resolution changes to conflicted drafts
    - Produce the flat draft list handed to the review store
    """

    def __init__(
        self,
        drafts: Sequence[DraftTransaction],
        annotations: Sequence[ConflictAnnotation],
    ):
        if len(drafts) != len(annotations):
            raise ValueError(
                f"Got {len(annotations)} annotations for {len(drafts)} drafts"
            )
        self._drafts = [draft.copy() for draft in drafts]
        self._annotations = [dataclasses.replace(a) for a in annotations]
        # Bumped on every resolution change
        self.revision = 0

    def __len__(self) -> int:
        return len(self._drafts)

    @property
    def drafts(self) -> tuple[DraftTransaction, ...]:
        return tuple(self._drafts)

    @property
    def annotations(self) -> tuple[ConflictAnnotation, ...]:
        return tuple(self._annotations)

    @property
    def conflict_count(self) -> int:
        """Number of drafts with at least one probable duplicate."""
        return sum(1 for a in self._annotations if a.has_conflicts)

    def conflicted_indices(self) -> list[int]:
        return [i for i, a in enumerate(self._annotations) if a.has_conflicts]

    def annotation_for(self, index: int) -> ConflictAnnotation:
        return self._annotations[check_position(index, len(self._annotations))]

    def resolution_for(self, index: int) -> Resolution:
        return self.annotation_for(index).resolution

    def set_resolution(self, index: int, value: Resolution | str) -> None:
        """
        Record the user's decision for one conflicted draft.

        Args:
            index: Draft position
            value: keep_existing or keep_both

        Raises:
            IndexError: Unknown draft position
            ValueError: Value outside {keep_existing, keep_both}, or the draft
                has nothing to resolve
        """
        annotation = self.annotation_for(index)

        try:
            resolution = Resolution(value)
        except ValueError as e:
            raise ValueError(f"Unknown resolution: {value!r}") from e
        if resolution not in USER_RESOLUTIONS:
            raise ValueError(f"Resolution must be keep_existing or keep_both, got {resolution.value}")
        if not annotation.has_conflicts:
            raise ValueError(f"Draft #{index} has no conflicts to resolve")

        annotation.resolution = resolution
        self.revision += 1
        logger.debug("Draft #%d resolution set to %s", index, resolution.value)

    def is_resolved(self) -> bool:
        """True when every conflicted draft carries an explicit resolution."""
        return all(
            a.resolution in USER_RESOLUTIONS for a in self._annotations if a.has_conflicts
        )

    def finalize(self) -> list[DraftTransaction]:
        """
        Flatten annotations into the ``ignored`` flag.

        ignored = has conflicts AND resolution == KEEP_EXISTING; false otherwise.
        Returns fresh copies, so calling it again with unchanged resolutions
        yields identical drafts.
        """
        finalized: list[DraftTransaction] = []
        for draft, annotation in zip(self._drafts, self._annotations):
            flat = draft.copy()
            flat.ignored = (
                annotation.has_conflicts and annotation.resolution == Resolution.KEEP_EXISTING
            )
            finalized.append(flat)

        skipped = sum(1 for d in finalized if d.ignored)
        logger.info(
            "Resolved conflicts: %d drafts skipped as duplicates, %d kept",
            skipped,
            len(finalized) - skipped,
        )
        return finalized
