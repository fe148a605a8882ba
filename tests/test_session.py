"""End-to-end tests for the import session."""

import asyncio

import pytest

from statement_import.api_client import LedgerApiError
from statement_import.errors import CommitError, FetchError, NothingToImportError
from statement_import.schemas import Resolution
from statement_import.services import ImportSession


@pytest.fixture
def session(fake_api):
    session = ImportSession(fake_api)
    asyncio.run(session.start())
    return session


def _advance_to_conflicts(session, statement):
    session.select_account("1")
    assert session.next()
    session.select_extractor("ing")
    assert session.next()
    session.select_file(statement)
    asyncio.run(session.upload())
    assert session.next()


class TestImportSession:
    """Tests for the full wizard flow."""

    def test_start_loads_reference_data(self, session, fake_api):
        assert len(session.context.accounts) == 1
        assert len(session.context.extractors) == 1
        assert len(session.context.categories) == 3
        assert session.current_step.id == "account"

    def test_start_category_failure(self, fake_api):
        fake_api.fail["list_categories"] = LedgerApiError("down")
        session = ImportSession(fake_api)

        with pytest.raises(FetchError) as exc_info:
            asyncio.run(session.start())

        assert exc_info.value.resource == "categories"

    def test_cannot_skip_steps(self, session):
        session.select_account("1")

        assert session.go_to(2) is False
        assert session.current_index == 0

    def test_scenario(self, session, fake_api, pdf_statement):
        """keep_both on draft #1 imports drafts #1 and #2 only."""
        _advance_to_conflicts(session, pdf_statement)
        tracker = asyncio.run(session.check_conflicts())

        assert tracker.conflicted_indices() == [0, 1]
        assert tracker.resolution_for(0) == Resolution.KEEP_EXISTING

        session.set_resolution(1, Resolution.KEEP_BOTH)
        assert session.next()
        assert session.current_step.id == "review"
        assert [d.ignored for d in session.review.drafts] == [True, False, False]

        result = asyncio.run(session.commit())

        assert result.count == 2
        assert fake_api.committed == [
            [
                {
                    "date": "2024-01-05",
                    "amount": -50.0,
                    "type": "expense",
                    "description": "Card payment",
                    "categoryIds": [],
                },
                {
                    "date": "2024-01-10",
                    "amount": 20.0,
                    "type": "income",
                    "description": "Refund",
                    "categoryIds": [],
                },
            ]
        ]

    def test_fetch_failure_blocks_conflicts_step(self, session, fake_api, pdf_statement):
        _advance_to_conflicts(session, pdf_statement)
        fake_api.fail["list_transactions"] = LedgerApiError("timeout")

        with pytest.raises(FetchError):
            asyncio.run(session.check_conflicts())

        assert session.next() is False
        assert session.current_step.id == "conflicts"
        assert session.current_step.error is not None

    def test_commit_refused_when_everything_ignored(self, session, fake_api, pdf_statement):
        _advance_to_conflicts(session, pdf_statement)
        asyncio.run(session.check_conflicts())
        session.next()
        session.review.set_all_ignored(True)

        with pytest.raises(NothingToImportError):
            asyncio.run(session.commit())

        assert not session.review_step.is_valid
        assert fake_api.call_count("commit_transactions") == 0

    def test_back_and_forth_keeps_review_edits(self, session, pdf_statement):
        _advance_to_conflicts(session, pdf_statement)
        asyncio.run(session.check_conflicts())
        session.next()
        session.review.set_field(2, "description", "Edited refund")

        assert session.back()
        assert session.next()

        assert session.review.draft(2).description == "Edited refund"

    def test_reupload_requires_new_duplicate_check(self, session, pdf_statement):
        _advance_to_conflicts(session, pdf_statement)
        asyncio.run(session.check_conflicts())
        session.back()

        asyncio.run(session.upload())
        session.next()

        assert session.tracker is None
        assert session.next() is False

    def test_added_category_survives_handoff(self, session, pdf_statement):
        _advance_to_conflicts(session, pdf_statement)
        asyncio.run(session.check_conflicts())
        session.next()

        category = asyncio.run(session.add_category("Coffee", draft_index=1))
        session.back()
        session.set_resolution(0, Resolution.KEEP_BOTH)
        session.next()

        assert category in session.review.categories

    def test_summary(self, session, pdf_statement):
        _advance_to_conflicts(session, pdf_statement)

        summary = session.summary()

        assert summary.account_name == "Checking"
        assert summary.extractor_name == "ING"
        assert summary.file_name == "statement.pdf"
        assert summary.draft_count == 3

    def test_cancel_discards_state(self, session, fake_api, pdf_statement):
        _advance_to_conflicts(session, pdf_statement)
        asyncio.run(session.check_conflicts())

        session.cancel()

        assert session.current_index == 0
        assert session.context.account_id == ""
        assert session.context.drafts is None
        assert session.tracker is None
        assert len(session.context.accounts) == 1
        assert fake_api.call_count("commit_transactions") == 0

    def test_commit_with_unreadable_ids_is_final(self, session, fake_api, pdf_statement):
        """The batch counts as committed even if the created ids cannot be read."""
        calls = []

        async def commit_transactions(account_id, transactions):
            calls.append(transactions)
            return {"count": len(transactions), "transactions": [{"ID": "tx-1"}]}

        fake_api.commit_transactions = commit_transactions
        _advance_to_conflicts(session, pdf_statement)
        asyncio.run(session.check_conflicts())
        session.next()

        result = asyncio.run(session.commit())

        assert result.count == 1
        assert session.review_step.committed
        with pytest.raises(CommitError):
            asyncio.run(session.commit())
        assert len(calls) == 1
