"""
Supabase (PostgREST) client with rate limiting using aiolimiter, and the
fuel_prices repository built on top of it.
"""
from datetime import date
from typing import List, Optional, Sequence, Tuple

from aiohttp import ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from loguru import logger

from pricematch.config import (
    CONCURRENCY,
    PRICES_TABLE,
    REQUEST_TIMEOUT,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
)
from pricematch.interfaces import FuelTypeNormalizer
from pricematch.models import FuelPrice, WeekId
from pricematch.normalization.fuel import normalize_fuel_type

QueryParams = List[Tuple[str, str]]


class BackendError(Exception):
    """Raised for misconfiguration or a non-2xx backend response."""


class SupabaseClient:
    """
    Thin async client for the Supabase REST endpoint.
    Uses AsyncLimiter for rate limiting instead of semaphores.

    One instance per owner; pass it to the repositories that need it.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        max_rate: int = CONCURRENCY,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = (url or SUPABASE_URL or "").rstrip("/")
        self.api_key = api_key or SUPABASE_ANON_KEY
        if not self.base_url or not self.api_key:
            raise BackendError("SUPABASE_URL and SUPABASE_ANON_KEY must be set in environment or config")
        # Token bucket: max_rate requests per second
        self.rate_limiter = AsyncLimiter(max_rate=max_rate, time_period=1.0)
        self.timeout = timeout
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=self.timeout))
        return self._session

    @property
    def headers(self):
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def get_request(self, table: str, params: QueryParams) -> List[dict]:
        """
        Run a PostgREST select against a table.

        Args:
            table: Table name, e.g. "fuel_prices".
            params: Query string pairs (select, filters, order, limit).

        Returns:
            Parsed JSON rows.
        """
        async with self.rate_limiter:
            session = await self._get_session()
            url = f"{self.base_url}/rest/v1/{table}"
            try:
                async with session.get(url, params=params, headers=self.headers) as resp:
                    if resp.status >= 400:
                        detail = await resp.text()
                        raise BackendError(f"Supabase error {resp.status} on {table}: {detail}")
                    data = await resp.json()
                    return data if isinstance(data, list) else []
            except Exception as e:
                logger.debug(f"⚠️ Supabase GET {table} failed: {e}")
                raise

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def _quote(value: str) -> str:
    # PostgREST: values with reserved chars or spaces must be double quoted
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _week_text(week: WeekId) -> str:
    return week.isoformat() if isinstance(week, date) else str(week)


class SupabasePriceRepository:
    """PriceRepository backed by the fuel_prices table."""

    def __init__(
        self,
        client: SupabaseClient,
        table: str = PRICES_TABLE,
        fuel_type_normalizer: FuelTypeNormalizer = normalize_fuel_type,
    ):
        self.client = client
        self.table = table
        self.fuel_type_normalizer = fuel_type_normalizer

    async def get_latest_week(self) -> Optional[str]:
        rows = await self.client.get_request(
            self.table,
            [("select", "week_of"), ("order", "week_of.desc"), ("limit", "1")],
        )
        if not rows:
            return None
        return rows[0].get("week_of")

    async def get_prices_for_week(self, week: WeekId) -> Sequence[FuelPrice]:
        rows = await self.client.get_request(
            self.table,
            [("select", "*"), ("week_of", f"eq.{_week_text(week)}")],
        )
        return [FuelPrice.from_row(row) for row in rows]

    async def get_region_prices_for_week(self, week: WeekId) -> Sequence[FuelPrice]:
        rows = await self.client.get_request(
            self.table,
            [
                ("select", "*"),
                ("week_of", f"eq.{_week_text(week)}"),
                ("or", '(area.eq.NCR,area.eq."Metro Manila",area.ilike.*City*)'),
            ],
        )
        return [FuelPrice.from_row(row) for row in rows]

    async def get_historical_prices(self, area: str, fuel_type: str) -> Sequence[FuelPrice]:
        normalized = self.fuel_type_normalizer(fuel_type)
        fuel_filter = (
            f"or(fuel_type.ilike.{_quote('*' + fuel_type + '*')},"
            f"fuel_type.ilike.{_quote('*' + normalized + '*')})"
        )
        area_filter = f'or(area.eq.{_quote(area)},area.eq.NCR,area.eq."Metro Manila")'
        rows = await self.client.get_request(
            self.table,
            [
                ("select", "*"),
                ("and", f"({fuel_filter},{area_filter})"),
                ("order", "week_of.desc"),
            ],
        )
        return [FuelPrice.from_row(row) for row in rows]
