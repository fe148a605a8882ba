"""
Conflict resolution and draft review.

Provides:
- ResolutionTracker: keep-existing / keep-both decisions for probable duplicates
- ReviewStore: field edits, ignore flags and category creation before commit
"""

from .resolution import USER_RESOLUTIONS, ResolutionTracker
from .workflow import EDITABLE_FIELDS, ReviewStore

__all__ = [
    "ResolutionTracker",
    "ReviewStore",
    "USER_RESOLUTIONS",
    "EDITABLE_FIELDS",
]
