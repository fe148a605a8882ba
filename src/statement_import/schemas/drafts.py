"""
Canonical draft transaction model (SSOT).

This is THE shape that flows through the whole import pipeline:
extractor response → duplicate check → review → commit payload.

Drafts have no id until committed. Within a session they are identified by
their position in the sequence returned by the extractor; that sequence never
changes length or order after parsing.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union

DateLike = Union[date, datetime]


class TransactionType(str, Enum):
    """Transaction type accepted for imported drafts."""

    INCOME = "income"
    EXPENSE = "expense"


class Resolution(str, Enum):
    """Per-draft decision for a probable duplicate."""

    UNSET = "unset"  # Only valid when there is nothing to resolve
    KEEP_EXISTING = "keep_existing"  # Skip the new draft
    KEEP_BOTH = "keep_both"  # Import the draft alongside the existing one


def parse_amount(value: Any) -> Decimal:
    """Parse an API amount (number or string) into a Decimal.

    Raises:
        ValueError: If the value is missing or not numeric.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, str):
            return Decimal(value.strip().replace(",", "."))
        # str() keeps floats like 50.1 from turning into 50.0999...
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def parse_datetime(value: Any) -> DateLike:
    """Parse an API date value.

    Accepts date/datetime objects, ``YYYY-MM-DD`` and ISO-8601 timestamps
    (including a trailing ``Z``). Plain dates stay dates; timestamps keep their
    time of day, which is informational only.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid date: {value!r}")

    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def calendar_day(value: DateLike) -> date:
    """Return the calendar day of a date or datetime (as written, no tz shift)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_transaction_type(value: Any) -> TransactionType:
    """Parse a draft type. Transfers are not valid import drafts.

    Raises:
        ValueError: For unknown types or ``transfer``.
    """
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(str(value).strip().lower())
    except ValueError as e:
        raise ValueError(f"Unsupported draft type: {value!r} (expected income or expense)") from e


def check_position(index: int, count: int) -> int:
    """Validate a draft position (0-based, no negative indexing).

    Raises:
        IndexError: If ``index`` is not in ``range(count)``.
    """
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < count:
        raise IndexError(f"Draft position {index!r} out of range (0..{count - 1})")
    return index


def _category_ids(data: dict) -> list[int]:
    """Read category ids from ``categoryIds`` or a ``categories`` object list."""
    raw_ids = data.get("categoryIds")
    if isinstance(raw_ids, list):
        return [int(cid) for cid in raw_ids]

    categories = data.get("categories")
    if isinstance(categories, list):
        ids = []
        for cat in categories:
            if isinstance(cat, dict):
                cid = cat.get("ID", cat.get("id"))
                if cid is not None:
                    ids.append(int(cid))
        return ids
    return []


@dataclass
class DraftTransaction:
    """A transaction parsed from a statement, not yet persisted."""

    date: DateLike
    amount: Decimal
    type: TransactionType
    description: str = ""
    category_ids: list[int] = field(default_factory=list)
    ignored: bool = False

    @classmethod
    def from_api_response(cls, data: dict) -> DraftTransaction:
        """Create from one entry of the extractor's ``transactions`` list."""
        return cls(
            date=parse_datetime(data.get("date")),
            amount=parse_amount(data.get("amount")),
            type=parse_transaction_type(data.get("type")),
            description=str(data.get("description") or ""),
            category_ids=_category_ids(data),
            ignored=bool(data.get("ignored", False)),
        )

    def copy(self) -> DraftTransaction:
        """Independent copy (category list included)."""
        return dataclasses.replace(self, category_ids=list(self.category_ids))

    @property
    def day(self) -> date:
        """Calendar day used for duplicate matching."""
        return calendar_day(self.date)


@dataclass(frozen=True)
class ExistingTransaction:
    """A transaction already stored for the target account (read-only)."""

    id: int
    date: DateLike
    amount: Decimal
    description: str = ""
    type: str = ""

    @classmethod
    def from_api_response(cls, data: dict) -> ExistingTransaction:
        """Create from the account transaction listing."""
        return cls(
            id=int(data.get("id", data.get("ID", 0))),
            date=parse_datetime(data.get("date")),
            amount=parse_amount(data.get("amount")),
            description=str(data.get("description") or ""),
            type=str(data.get("type") or ""),
        )

    @property
    def day(self) -> date:
        """Calendar day used for duplicate matching."""
        return calendar_day(self.date)


@dataclass
class ConflictAnnotation:
    """Duplicate-check result attached to one draft (never persisted)."""

    conflicts_with: tuple[ExistingTransaction, ...] = ()
    resolution: Resolution = Resolution.UNSET

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts_with) > 0


@dataclass(frozen=True)
class Category:
    """Category available for assignment to drafts."""

    id: int
    name: str
    type: TransactionType | str

    @classmethod
    def from_api_response(cls, data: dict) -> Category:
        """Create from the API; accepts ``ID/Name/Type`` or lowercase keys."""
        raw_type = str(data.get("Type", data.get("type", "")))
        try:
            cat_type: TransactionType | str = TransactionType(raw_type.lower())
        except ValueError:
            cat_type = raw_type
        return cls(
            id=int(data.get("ID", data.get("id", 0))),
            name=str(data.get("Name", data.get("name", ""))),
            type=cat_type,
        )


@dataclass(frozen=True)
class Account:
    """Target account for the import."""

    id: str
    name: str

    @classmethod
    def from_api_response(cls, data: dict) -> Account:
        return cls(
            id=str(data.get("id", data.get("ID", ""))),
            name=str(data.get("name", data.get("Name", ""))),
        )


@dataclass(frozen=True)
class Extractor:
    """Server-side statement extractor."""

    name: str
    display_name: str

    @classmethod
    def from_api_response(cls, data: dict) -> Extractor:
        name = str(data.get("name", ""))
        return cls(name=name, display_name=str(data.get("displayName") or name))
