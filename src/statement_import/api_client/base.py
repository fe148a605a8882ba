"""
Collaborator interface for the ledger API.

Everything the import pipeline needs from the outside world. The REST client
implements it; tests substitute an in-memory fake.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..schemas.drafts import (
        Account,
        Category,
        DraftTransaction,
        ExistingTransaction,
        Extractor,
    )
    from ..schemas.statement_file import StatementFile


class LedgerApi(Protocol):
    """External collaborators of the import wizard."""

    async def list_accounts(self) -> list[Account]: ...

    async def list_extractors(self) -> list[Extractor]: ...

    async def list_categories(self) -> list[Category]: ...

    async def parse_statement(
        self, statement: StatementFile, account_id: str, extractor: str
    ) -> list[DraftTransaction]: ...

    async def list_transactions(self, account_id: str) -> list[ExistingTransaction]: ...

    async def create_category(self, name: str, category_type: str) -> Category: ...

    async def commit_transactions(self, account_id: str, transactions: list[dict]) -> dict: ...

    async def create_categorization_rule(
        self,
        name: str,
        value: str,
        transaction_type: str,
        category_id: int,
        rule_type: str = "exact",
        active: bool = True,
    ) -> dict: ...
