"""Tests for the review/edit store."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from statement_import.api_client import LedgerApiError
from statement_import.errors import FetchError, ValidationError
from statement_import.review import ReviewStore
from statement_import.schemas import TransactionType


@pytest.fixture
def store(make_draft, categories, fake_api):
    """Store with one expense, one income and one ignored expense."""
    drafts = [
        make_draft("2024-01-05", "-50.00", "expense", "Supermarket", category_ids=[7]),
        make_draft("2024-01-10", "20.00", "income", "Refund"),
        make_draft("2024-01-12", "-9.99", "expense", "Supermarket", ignored=True),
    ]
    return ReviewStore(drafts, categories=categories, api=fake_api)


class TestSetField:
    """Tests for single-field edits."""

    def test_edit_amount_from_string(self, store):
        store.set_field(0, "amount", "-51,20")

        assert store.draft(0).amount == Decimal("-51.20")

    def test_edit_date_from_iso_string(self, store):
        store.set_field(0, "date", "2024-01-06")

        assert store.draft(0).date == date(2024, 1, 6)

    def test_edit_description(self, store):
        store.set_field(1, "description", "Tax refund")

        assert store.draft(1).description == "Tax refund"

    def test_edit_only_touches_one_draft(self, store):
        before = store.snapshot()

        store.set_field(0, "description", "Changed")

        assert store.drafts[1:] == tuple(before[1:])

    def test_unknown_field(self, store):
        with pytest.raises(ValueError):
            store.set_field(0, "id", 5)

    def test_invalid_type(self, store):
        with pytest.raises(ValueError):
            store.set_field(0, "type", "transfer")

    def test_unknown_index(self, store):
        with pytest.raises(IndexError):
            store.set_field(5, "description", "x")

    def test_set_ignored(self, store):
        store.set_field(0, "ignored", True)

        assert store.draft(0).ignored is True


class TestStaleCategories:
    """Category choices stay consistent with the draft type."""

    def test_categories_offered_match_type(self, store):
        assert [c.id for c in store.categories_for(0)] == [7, 8]
        assert [c.id for c in store.categories_for(1)] == [5]

    def test_same_type_is_noop(self, make_draft, categories):
        """Re-setting the current type leaves chosen categories alone."""
        store = ReviewStore([make_draft(type="expense", category_ids=[5])], categories)

        store.set_field(0, "type", "expense")

        assert store.draft(0).category_ids == [5]

    def test_type_change_drops_mismatched_categories(self, store):
        store.set_field(0, "type", TransactionType.INCOME)

        assert store.draft(0).type == TransactionType.INCOME
        assert store.draft(0).category_ids == []

    def test_type_change_keeps_matching_and_unknown_ids(self, make_draft, categories):
        store = ReviewStore([make_draft(type="expense", category_ids=[7, 5, 42])], categories)

        store.set_field(0, "type", "income")

        assert store.draft(0).category_ids == [5, 42]


class TestIgnoreFlags:
    """Tests for ignore toggles and counts."""

    def test_counts(self, store):
        assert store.to_import == 2
        assert store.to_ignore == 1

    def test_toggle_ignore_flips_one(self, store):
        assert store.toggle_ignore(1) is True
        assert [d.ignored for d in store.drafts] == [False, True, True]

        assert store.toggle_ignore(1) is False
        assert [d.ignored for d in store.drafts] == [False, False, True]

    def test_toggle_all_with_mixed_flags_ignores_all(self, store):
        assert store.toggle_all() is True
        assert all(d.ignored for d in store.drafts)

    def test_toggle_all_when_all_ignored_restores_all(self, store):
        store.set_all_ignored(True)

        assert store.toggle_all() is False
        assert not any(d.ignored for d in store.drafts)

    def test_store_copies_drafts(self, make_draft):
        drafts = [make_draft()]
        store = ReviewStore(drafts)

        store.toggle_ignore(0)

        assert drafts[0].ignored is False


class TestAddCategory:
    """Tests for creating categories during review."""

    def test_adds_to_universe_and_draft(self, store, fake_api):
        category = asyncio.run(store.add_category("Coffee", draft_index=0))

        assert category.type == TransactionType.EXPENSE
        assert category in store.categories
        assert store.draft(0).category_ids == [7, category.id]
        assert fake_api.calls[-1] == ("create_category", ("Coffee", "expense"))

    def test_type_follows_draft(self, store):
        category = asyncio.run(store.add_category("Bonus", draft_index=1))

        assert category.type == TransactionType.INCOME
        assert category in store.categories_for(1)

    def test_without_draft(self, store):
        before = store.snapshot()

        category = asyncio.run(store.add_category("Travel", "expense"))

        assert category in store.categories
        assert list(store.drafts) == before

    def test_empty_name_rejected(self, store, fake_api):
        with pytest.raises(ValidationError):
            asyncio.run(store.add_category("  "))

        assert fake_api.call_count("create_category") == 0

    def test_failure_leaves_drafts_unchanged(self, store, fake_api):
        fake_api.fail["create_category"] = LedgerApiError("server down")
        before = store.snapshot()

        with pytest.raises(FetchError) as exc_info:
            asyncio.run(store.add_category("Coffee", draft_index=0))

        assert exc_info.value.resource == "categories"
        assert "Failed to add category" in str(exc_info.value)
        assert list(store.drafts) == before
        assert len(store.categories) == 3

    def test_requires_api(self, make_draft):
        store = ReviewStore([make_draft()])

        with pytest.raises(RuntimeError):
            asyncio.run(store.add_category("Coffee"))


class TestCategorizationRule:
    """Tests for turning a draft into a categorization rule."""

    def test_rule_applied_to_same_description_and_type(self, store, fake_api):
        applied = asyncio.run(store.create_rule_from_draft(0))

        assert applied == 2
        assert store.draft(2).category_ids == [7]
        assert store.draft(1).category_ids == []
        assert fake_api.rules == [
            {
                "name": "Auto-rule for: Supermarket",
                "type": "exact",
                "value": "Supermarket",
                "transaction_type": "expense",
                "category_dst": 7,
                "active": True,
            }
        ]

    def test_needs_categories(self, store, fake_api):
        with pytest.raises(ValidationError):
            asyncio.run(store.create_rule_from_draft(1))

        assert fake_api.rules == []

    def test_failure_changes_nothing(self, store, fake_api):
        fake_api.fail["create_categorization_rule"] = LedgerApiError("nope")

        with pytest.raises(FetchError):
            asyncio.run(store.create_rule_from_draft(0))

        assert store.draft(2).category_ids == []


class TestPositions:
    """Draft positions are validated before any change or API call."""

    def test_negative_set_field(self, store):
        before = store.snapshot()

        with pytest.raises(IndexError):
            store.set_field(-1, "description", "x")

        assert list(store.drafts) == before

    def test_negative_toggle_ignore(self, store):
        with pytest.raises(IndexError):
            store.toggle_ignore(-1)

        assert store.draft(2).ignored is True

    def test_negative_draft(self, store):
        with pytest.raises(IndexError):
            store.draft(-3)

    def test_negative_add_category(self, store, fake_api):
        with pytest.raises(IndexError):
            asyncio.run(store.add_category("Coffee", draft_index=-1))

        assert fake_api.call_count("create_category") == 0

    def test_negative_rule(self, store, fake_api):
        with pytest.raises(IndexError):
            asyncio.run(store.create_rule_from_draft(-3))

        assert fake_api.rules == []


class TestCategoryTypeOnCreate:
    """A new category attached to a draft must match its type."""

    def test_mismatched_type_rejected(self, store, fake_api):
        with pytest.raises(ValidationError):
            asyncio.run(store.add_category("Salary", "income", draft_index=0))

        assert store.draft(0).category_ids == [7]
        assert fake_api.call_count("create_category") == 0
        assert len(store.categories) == 3

    def test_matching_type_attached(self, store):
        category = asyncio.run(store.add_category("Bonus", "income", draft_index=1))

        assert store.draft(1).category_ids == [category.id]
