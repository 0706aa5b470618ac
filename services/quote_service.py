# services/quote_service.py
from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional

import httpx
from dotenv import load_dotenv

from utils.common_helpers import safe_float

load_dotenv()

logger = logging.getLogger(__name__)

NSE_SUFFIX = ".NS"
BSE_SUFFIX = ".BO"


class QuoteServiceError(Exception):
    """Domain-level error for the market quote service."""


def format_exchange_symbol(symbol: str) -> str:
    """
    Qualify a bare ticker for the quotes endpoint:
      - already qualified ("TCS.NS", "BRK.B") -> unchanged
      - all digits (BSE scrip code, "500325") -> "500325.BO"
      - anything else ("INFY") -> "INFY.NS"
    """
    s = (symbol or "").upper().strip()
    if not s or "." in s:
        return s
    if s.isdigit():
        return f"{s}{BSE_SUFFIX}"
    return f"{s}{NSE_SUFFIX}"


def base_symbol(symbol: str) -> str:
    s = (symbol or "").upper().strip()
    for suffix in (NSE_SUFFIX, BSE_SUFFIX):
        if s.endswith(suffix):
            return s[: -len(suffix)]
    return s


def _chunks(items: List[str], size: int) -> Iterable[List[str]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


class QuoteService:
    """
    Async client for the Yahoo Finance quotes endpoint hosted on RapidAPI.

    `get_prices` returns a flat map price-by-symbol containing both the
    qualified symbol ("INFY.NS") and its base form ("INFY").
    """

    QUOTES_PATH = "/api/v1/markets/stock/quotes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        host: Optional[str] = None,
        timeout: float = 10.0,
        max_concurrency: int = 4,
        batch_size: int = 40,
    ):
        self.api_key = api_key or os.getenv("RAPIDAPI_KEY")
        if not self.api_key:
            raise QuoteServiceError("Missing RAPIDAPI_KEY")

        self.host = host or os.getenv("RAPIDAPI_HOST", "yahoo-finance15.p.rapidapi.com")
        self.base_url = f"https://{self.host}"
        self.timeout = timeout
        self.max_concurrency = max(1, int(max_concurrency))
        self.batch_size = max(1, int(batch_size))

    @asynccontextmanager
    async def _client(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            yield client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as c:
            yield c

    def _headers(self) -> Dict[str, str]:
        return {"x-rapidapi-key": self.api_key, "x-rapidapi-host": self.host}

    async def _fetch_batch(self, c: httpx.AsyncClient, symbols: List[str]) -> List[Dict[str, Any]]:
        try:
            r = await c.get(
                f"{self.base_url}{self.QUOTES_PATH}",
                params={"ticker": ",".join(symbols)},
                headers=self._headers(),
            )
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise QuoteServiceError(f"Quote request failed: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise QuoteServiceError(f"Quote request failed: {type(e).__name__}") from e

        try:
            data = r.json()
        except ValueError as e:
            raise QuoteServiceError("Quote response is not JSON") from e

        body = data.get("body") if isinstance(data, dict) else None
        return [item for item in (body or []) if isinstance(item, dict)]

    async def get_prices(
        self,
        symbols: Iterable[str],
        client: Optional[httpx.AsyncClient] = None,
    ) -> Dict[str, float]:
        """
        Fetch live prices for the given (possibly bare) symbols.
        Raises QuoteServiceError if any batch fails.
        """
        formatted: List[str] = []
        seen: set[str] = set()
        for s in symbols:
            fs = format_exchange_symbol(s)
            if fs and fs not in seen:
                seen.add(fs)
                formatted.append(fs)

        if not formatted:
            return {}

        sem = asyncio.Semaphore(self.max_concurrency)

        async with self._client(client) as c:
            async def run(batch: List[str]) -> List[Dict[str, Any]]:
                async with sem:
                    return await self._fetch_batch(c, batch)

            results = await asyncio.gather(*(run(b) for b in _chunks(formatted, self.batch_size)))

        prices: Dict[str, float] = {}
        for batch in results:
            for item in batch:
                symbol = (item.get("symbol") or "").upper().strip()
                price = safe_float(item.get("regularMarketPrice"))
                if not symbol or price is None or price <= 0:
                    continue
                prices[symbol] = price
                prices.setdefault(base_symbol(symbol), price)

        logger.info("quote_fetch_done requested=%d priced=%d", len(formatted), len(prices))
        return prices
