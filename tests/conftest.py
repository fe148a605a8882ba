"""Shared fixtures: draft factories and an in-memory ledger API."""

from datetime import date
from decimal import Decimal

import pytest

from statement_import.config import ImportConfig
from statement_import.schemas import (
    Account,
    Category,
    DraftTransaction,
    ExistingTransaction,
    Extractor,
    StatementFile,
    TransactionType,
)

# Smallest content accepted by the local PDF checks
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def _day(value):
    return date.fromisoformat(value) if isinstance(value, str) else value


def build_draft(
    day="2024-01-05",
    amount="-50.00",
    type="expense",
    description="",
    category_ids=None,
    ignored=False,
) -> DraftTransaction:
    return DraftTransaction(
        date=_day(day),
        amount=Decimal(amount),
        type=TransactionType(type),
        description=description,
        category_ids=list(category_ids or []),
        ignored=ignored,
    )


def build_existing(id=1, day="2024-01-05", amount="-50.00", description="") -> ExistingTransaction:
    return ExistingTransaction(
        id=id,
        date=_day(day),
        amount=Decimal(amount),
        description=description,
    )


class FakeLedgerApi:
    """In-memory LedgerApi that records every call.

    Set ``fail[method_name] = exception`` to make a method raise.
    """

    def __init__(
        self,
        accounts=None,
        extractors=None,
        categories=None,
        drafts=None,
        existing=None,
    ):
        self.accounts = accounts if accounts is not None else [Account(id="1", name="Checking")]
        self.extractors = (
            extractors if extractors is not None else [Extractor(name="ing", display_name="ING")]
        )
        self.categories = list(categories or [])
        self.drafts = list(drafts or [])
        self.existing = list(existing or [])
        self.fail = {}
        self.calls = []
        self.committed = []
        self.rules = []
        self._next_category_id = 100

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def call_count(self, name) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    async def list_accounts(self):
        self._record("list_accounts")
        return list(self.accounts)

    async def list_extractors(self):
        self._record("list_extractors")
        return list(self.extractors)

    async def list_categories(self):
        self._record("list_categories")
        return list(self.categories)

    async def parse_statement(self, statement, account_id, extractor):
        self._record("parse_statement", statement.name, account_id, extractor)
        return [draft.copy() for draft in self.drafts]

    async def list_transactions(self, account_id):
        self._record("list_transactions", account_id)
        return list(self.existing)

    async def create_category(self, name, category_type):
        self._record("create_category", name, category_type)
        self._next_category_id += 1
        category = Category(
            id=self._next_category_id, name=name, type=TransactionType(category_type)
        )
        self.categories.append(category)
        return category

    async def commit_transactions(self, account_id, transactions):
        self._record("commit_transactions", account_id)
        self.committed.append(list(transactions))
        return {
            "count": len(transactions),
            "transactions": [{"ID": 1000 + i} for i in range(len(transactions))],
        }

    async def create_categorization_rule(
        self, name, value, transaction_type, category_id, rule_type="exact", active=True
    ):
        self._record("create_categorization_rule", name)
        rule = {
            "name": name,
            "type": rule_type,
            "value": value,
            "transaction_type": transaction_type,
            "category_dst": category_id,
            "active": active,
        }
        self.rules.append(rule)
        return rule


@pytest.fixture
def make_draft():
    """Factory for draft transactions."""
    return build_draft


@pytest.fixture
def make_existing():
    """Factory for existing account transactions."""
    return build_existing


@pytest.fixture
def import_config():
    """Default import settings."""
    return ImportConfig()


@pytest.fixture
def pdf_statement():
    """A small statement file that passes local validation."""
    return StatementFile(name="statement.pdf", content=PDF_BYTES, content_type="application/pdf")


@pytest.fixture
def categories():
    """Category universe with both types."""
    return [
        Category(id=5, name="Salary", type=TransactionType.INCOME),
        Category(id=7, name="Groceries", type=TransactionType.EXPENSE),
        Category(id=8, name="Rent", type=TransactionType.EXPENSE),
    ]


@pytest.fixture
def scenario_drafts():
    """Three parsed drafts: two identical expenses and one income."""
    return [
        build_draft("2024-01-05", "-50.00", "expense", "Card payment"),
        build_draft("2024-01-05", "-50.00", "expense", "Card payment"),
        build_draft("2024-01-10", "20.00", "income", "Refund"),
    ]


@pytest.fixture
def scenario_existing():
    """One stored transaction matching the first two scenario drafts."""
    return [build_existing(id=900, day="2024-01-05", amount="-50.00", description="Card payment")]


@pytest.fixture
def fake_api(categories, scenario_drafts, scenario_existing):
    """Ledger API preloaded with the three-draft scenario."""
    return FakeLedgerApi(
        categories=categories,
        drafts=scenario_drafts,
        existing=scenario_existing,
    )
