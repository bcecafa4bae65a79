"""
Record storage module for Expense Report Service.

The report pipeline only needs to read every expense, income and budget
record. Stores return a FinanceData bundle or raise StorageError; they never
return partial data.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Union

import httpx

from .config import (
    RECORDS_FILE,
    STORAGE_TIMEOUT,
    SUPABASE_BUDGETS_TABLE,
    SUPABASE_EXPENSES_TABLE,
    SUPABASE_INCOMES_TABLE,
    SUPABASE_ORDER_COLUMN,
    SUPABASE_PAGE_SIZE,
    SUPABASE_SERVICE_KEY,
    SUPABASE_URL,
    is_supabase_configured,
)
from .exceptions import StorageError
from .models import FinanceData, budgets_from_list, expense_from_dict, income_from_dict

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def fetch_all(self) -> FinanceData:
        ...


def parse_finance_data(
    incomes: list[dict],
    expenses: list[dict],
    budgets: Union[list[dict], dict[str, dict]],
) -> FinanceData:
    """
    Build FinanceData from raw storage rows.

    Budgets may be a list of ``{category, limit}`` rows or a mapping of
    category to row.

    Raises:
        StorageError: If any row is malformed
    """
    if isinstance(budgets, dict):
        budgets = [{"category": category, **row} for category, row in budgets.items()]

    try:
        return FinanceData(
            incomes=[income_from_dict(row) for row in incomes],
            expenses=[expense_from_dict(row) for row in expenses],
            budgets=budgets_from_list(budgets),
        )
    except (ValueError, TypeError, AttributeError) as e:
        raise StorageError(f"Malformed record data: {e}") from e


class InMemoryRecordStore:
    """Holds records in memory. Used by tests and embedded callers."""

    def __init__(self, data: Optional[FinanceData] = None):
        self.data = data or FinanceData()

    async def fetch_all(self) -> FinanceData:
        return self.data


class JsonFileRecordStore:
    """
    Reads records from a JSON file of the form
    ``{"incomes": [...], "expenses": [...], "budgets": [...]}``.
    """

    def __init__(self, path: Path = RECORDS_FILE):
        self.path = Path(path)

    def _read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError as e:
            raise StorageError(f"Records file not found: {self.path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read records file {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise StorageError(f"Records file {self.path} must contain a JSON object")
        return raw

    async def fetch_all(self) -> FinanceData:
        raw = await asyncio.to_thread(self._read)
        data = parse_finance_data(
            raw.get("incomes", []),
            raw.get("expenses", []),
            raw.get("budgets", []),
        )
        logger.info(
            f"Loaded {len(data.incomes)} incomes, {len(data.expenses)} expenses, "
            f"{len(data.budgets)} budgets from {self.path}"
        )
        return data


def _total_count(response: httpx.Response) -> Optional[int]:
    """Row total from a ``Content-Range: 0-999/1500`` header, if the server sent one."""
    _, _, total = response.headers.get("Content-Range", "").partition("/")
    return int(total) if total.isdigit() else None


class SupabaseRecordStore:
    """Reads records from Supabase tables through the PostgREST API."""

    def __init__(
        self,
        url: str = SUPABASE_URL,
        service_key: str = SUPABASE_SERVICE_KEY,
        expenses_table: str = SUPABASE_EXPENSES_TABLE,
        incomes_table: str = SUPABASE_INCOMES_TABLE,
        budgets_table: str = SUPABASE_BUDGETS_TABLE,
        timeout: float = STORAGE_TIMEOUT,
        page_size: int = SUPABASE_PAGE_SIZE,
        order_column: str = SUPABASE_ORDER_COLUMN,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.service_key = service_key
        self.expenses_table = expenses_table
        self.incomes_table = incomes_table
        self.budgets_table = budgets_table
        self.timeout = timeout
        self.page_size = page_size
        self.order_column = order_column
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Accept": "application/json",
            "Prefer": "count=exact",
        }

    async def _fetch_table(self, client: httpx.AsyncClient, table: str) -> list[dict[str, Any]]:
        """
        Read every row of ``table``, one page at a time.

        PostgREST silently caps each response at its max-rows setting, so a
        single request can come back short. Pages are requested until one
        returns fewer than ``page_size`` rows, or until the total reported
        in ``Content-Range`` has been read.
        """
        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            response = await client.get(
                f"{self.url}/rest/v1/{table}",
                params={
                    "select": "*",
                    "order": self.order_column,
                    "limit": self.page_size,
                    "offset": offset,
                },
                headers=self._headers(),
            )
            response.raise_for_status()
            page = response.json()
            if not isinstance(page, list):
                raise StorageError(f"Unexpected response for table {table}")

            rows.extend(page)
            total = _total_count(response)
            if total is not None:
                if not page or len(rows) >= total:
                    return rows
            elif len(page) < self.page_size:
                return rows
            offset += len(page)

    async def fetch_all(self) -> FinanceData:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                incomes = await self._fetch_table(client, self.incomes_table)
                expenses = await self._fetch_table(client, self.expenses_table)
                budgets = await self._fetch_table(client, self.budgets_table)
        except httpx.TimeoutException as e:
            raise StorageError("Timeout fetching records from Supabase") from e
        except httpx.HTTPStatusError as e:
            raise StorageError(f"Failed to fetch records: HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise StorageError(f"Failed to fetch records: {e}") from e

        logger.info(
            f"Fetched {len(incomes)} incomes, {len(expenses)} expenses, "
            f"{len(budgets)} budgets from Supabase"
        )
        return parse_finance_data(incomes, expenses, budgets)


def build_record_store() -> RecordStore:
    """Supabase when configured, otherwise the local records file."""
    if is_supabase_configured():
        logger.info(f"Using Supabase record store: {SUPABASE_URL}")
        return SupabaseRecordStore()

    logger.warning(f"⚠️  Supabase not configured - reading records from {RECORDS_FILE}")
    return JsonFileRecordStore(RECORDS_FILE)
