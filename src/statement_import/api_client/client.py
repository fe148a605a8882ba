"""
Ledger REST API client implementation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from ..schemas.drafts import Account, Category, DraftTransaction, ExistingTransaction, Extractor

if TYPE_CHECKING:
    from ..config import ApiConfig
    from ..schemas.statement_file import StatementFile

logger = logging.getLogger(__name__)


class LedgerApiError(Exception):
    """Base exception for ledger client errors."""

    pass


class LedgerAPIResponseError(LedgerApiError):
    """API returned an error response."""

    def __init__(self, status_code: int, message: str, response_body: str | None = None):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"Ledger API error {status_code}: {message}")


class LedgerConnectionError(LedgerApiError):
    """Failed to reach the ledger API."""

    pass


class LedgerApiClient:
    """
    Async client for the ledger REST API.

    Features:
    - Statement upload to the server-side extractor
    - Account transaction listing (duplicate check input)
    - Category creation and categorization rules
    - Batch transaction commit
    - Connection retries via the transport
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root (e.g., "http://localhost:8080")
            token: Bearer token
            timeout: Request timeout in seconds
            max_retries: Connection retry attempts
            transport: Custom transport (tests pass httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport or httpx.AsyncHTTPTransport(retries=max_retries),
        )

    @classmethod
    def from_config(cls, config: ApiConfig) -> LedgerApiClient:
        return cls(
            base_url=config.base_url,
            token=config.token,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )

    async def __aenter__(self) -> LedgerApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json_data: Any = None,
        data: dict | None = None,
        files: dict | None = None,
    ) -> httpx.Response:
        """Make an API request with error handling."""
        logger.debug("API Request: %s %s", method, endpoint)

        try:
            response = await self._client.request(
                method,
                endpoint,
                params=params,
                json=json_data,
                data=data,
                files=files,
            )
        except httpx.TimeoutException as e:
            logger.error("Timeout for %s %s: %s", method, endpoint, e)
            raise LedgerConnectionError(f"Request to {self.base_url} timed out: {e}") from e
        except httpx.ConnectError as e:
            logger.error("Connection error to %s: %s", self.base_url, e)
            raise LedgerConnectionError(f"Failed to connect to {self.base_url}: {e}") from e
        except httpx.RequestError as e:
            logger.error("Request error for %s %s: %s", method, endpoint, e)
            raise LedgerApiError(f"Request failed: {e}") from e

        logger.debug("Response status: %s", response.status_code)

        if response.is_error:
            body = response.text
            message = response.reason_phrase
            try:
                error_json = response.json()
                if isinstance(error_json, dict):
                    message = error_json.get("error") or error_json.get("message") or message
            except ValueError:
                pass

            logger.error("API Error %s: %s", response.status_code, message)
            raise LedgerAPIResponseError(
                status_code=response.status_code,
                message=message,
                response_body=body,
            )

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        """Decode a successful response body."""
        try:
            return response.json()
        except ValueError as e:
            logger.error("Non-JSON response from %s: %s", response.request.url, e)
            raise LedgerApiError(
                f"Invalid JSON response from {response.request.url.path}: {e}"
            ) from e

    @staticmethod
    def _items(payload: Any, key: str) -> list[dict]:
        """Unwrap ``{key: [...]}`` or a bare list."""
        if isinstance(payload, dict):
            payload = payload.get(key) or payload.get("data") or []
        if not isinstance(payload, list):
            raise LedgerApiError(f"Unexpected response shape for {key}: {type(payload).__name__}")
        return payload

    async def test_connection(self) -> bool:
        """Test connection to the API."""
        try:
            await self._request("GET", "/api/accounts")
            return True
        except LedgerApiError:
            return False

    async def list_accounts(self) -> list[Account]:
        """List accounts the user can import into."""
        response = await self._request("GET", "/api/accounts")
        items = self._items(self._json(response), "accounts")
        return [Account.from_api_response(a) for a in items]

    async def list_extractors(self) -> list[Extractor]:
        """List the server-side statement extractors."""
        response = await self._request("GET", "/api/accounts/transactions/extractors")
        items = self._items(self._json(response), "extractors")
        return [Extractor.from_api_response(e) for e in items]

    async def list_categories(self) -> list[Category]:
        """List all categories (both types)."""
        response = await self._request("GET", "/api/categories")
        items = self._items(self._json(response), "categories")
        return [Category.from_api_response(c) for c in items]

    async def parse_statement(
        self,
        statement: StatementFile,
        account_id: str,
        extractor: str,
    ) -> list[DraftTransaction]:
        """
        Upload a statement and return the extracted drafts in statement order.

        Raises:
            LedgerAPIResponseError: The extractor rejected the file
            LedgerApiError: The response could not be read as drafts
        """
        form = {"accountId": str(account_id)}
        if extractor:
            form["extractor"] = extractor

        response = await self._request(
            "POST",
            f"/api/accounts/{account_id}/transactions/import",
            data=form,
            files={"file": (statement.name, statement.content, statement.content_type)},
        )

        raw = self._items(self._json(response), "transactions")
        try:
            drafts = [DraftTransaction.from_api_response(t) for t in raw]
        except (ValueError, TypeError) as e:
            raise LedgerApiError(f"Invalid transaction in extractor response: {e}") from e

        logger.info("Extractor %s returned %d drafts", extractor or "(default)", len(drafts))
        return drafts

    async def list_transactions(self, account_id: str) -> list[ExistingTransaction]:
        """List every stored transaction of an account, in API order."""
        response = await self._request("GET", f"/api/accounts/{account_id}/transactions")
        raw = self._items(self._json(response), "transactions")
        try:
            return [ExistingTransaction.from_api_response(t) for t in raw]
        except (ValueError, TypeError) as e:
            raise LedgerApiError(f"Invalid transaction in account listing: {e}") from e

    async def create_category(self, name: str, category_type: str) -> Category:
        """Create a category and return it."""
        response = await self._request(
            "POST",
            "/api/categories",
            json_data={"name": name, "type": category_type},
        )
        data = self._json(response)
        if isinstance(data, dict) and isinstance(data.get("category"), dict):
            data = data["category"]
        category = Category.from_api_response(data)
        logger.info("Created category id=%d (%s)", category.id, category_type)
        return category

    async def commit_transactions(self, account_id: str, transactions: list[dict]) -> dict:
        """
        Create all transactions in one bulk request.

        The API applies the batch as a whole; no splitting or per-row retry.
        """
        response = await self._request(
            "POST",
            f"/api/accounts/{account_id}/transactions/bulk",
            json_data={"transactions": transactions},
        )
        data = self._json(response)
        return data if isinstance(data, dict) else {}

    async def create_categorization_rule(
        self,
        name: str,
        value: str,
        transaction_type: str,
        category_id: int,
        rule_type: str = "exact",
        active: bool = True,
    ) -> dict:
        """Create a server-side categorization rule."""
        response = await self._request(
            "POST",
            "/api/categorization-rules",
            json_data={
                "name": name,
                "type": rule_type,
                "value": value,
                "transaction_type": transaction_type,
                "category_dst": category_id,
                "active": active,
            },
        )
        data = self._json(response)
        return data if isinstance(data, dict) else {}
