import asyncio
import os
import unittest
from unittest.mock import patch

import httpx

from services.quote_service import QuoteService, QuoteServiceError, base_symbol, format_exchange_symbol


class SymbolFormattingTests(unittest.TestCase):
    def test_exchange_suffix(self) -> None:
        self.assertEqual(format_exchange_symbol("infy"), "INFY.NS")
        self.assertEqual(format_exchange_symbol("500325"), "500325.BO")
        self.assertEqual(format_exchange_symbol("TCS.NS"), "TCS.NS")
        self.assertEqual(format_exchange_symbol("BRK.B"), "BRK.B")
        self.assertEqual(format_exchange_symbol(""), "")

    def test_base_symbol(self) -> None:
        self.assertEqual(base_symbol("INFY.NS"), "INFY")
        self.assertEqual(base_symbol("500325.BO"), "500325")
        self.assertEqual(base_symbol("BRK.B"), "BRK.B")


class QuoteServiceTests(unittest.TestCase):
    def test_prices_are_keyed_by_qualified_and_base_symbol(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"body": [
                {"symbol": "INFY.NS", "regularMarketPrice": 1500.5},
                {"symbol": "500325.BO", "regularMarketPrice": "2900"},
                {"symbol": "XYZ.NS", "regularMarketPrice": None},
            ]})

        async def _run():
            service = QuoteService(api_key="k", host="quotes.test")
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await service.get_prices(["infy", "500325", "INFY", "xyz"], client=client)

        prices = asyncio.run(_run())

        self.assertEqual(prices["INFY.NS"], 1500.5)
        self.assertEqual(prices["INFY"], 1500.5)
        self.assertEqual(prices["500325"], 2900.0)
        self.assertNotIn("XYZ.NS", prices)
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].url.params["ticker"], "INFY.NS,500325.BO,XYZ.NS")
        self.assertEqual(seen[0].headers["x-rapidapi-key"], "k")
        self.assertEqual(seen[0].headers["x-rapidapi-host"], "quotes.test")

    def test_symbols_are_batched(self) -> None:
        tickers = []

        def handler(request: httpx.Request) -> httpx.Response:
            tickers.append(request.url.params["ticker"])
            return httpx.Response(200, json={"body": []})

        async def _run():
            service = QuoteService(api_key="k", batch_size=2)
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await service.get_prices(["A", "B", "C"], client=client)

        self.assertEqual(asyncio.run(_run()), {})
        self.assertEqual(sorted(tickers), ["A.NS,B.NS", "C.NS"])

    def test_http_failure_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"message": "down"})

        async def _run():
            service = QuoteService(api_key="k")
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                await service.get_prices(["INFY"], client=client)

        with self.assertRaises(QuoteServiceError):
            asyncio.run(_run())

    def test_missing_api_key(self) -> None:
        with patch.dict(os.environ, {"RAPIDAPI_KEY": ""}):
            with self.assertRaises(QuoteServiceError):
                QuoteService()

    def test_no_symbols_skips_network(self) -> None:
        service = QuoteService(api_key="k")
        self.assertEqual(asyncio.run(service.get_prices([])), {})


if __name__ == "__main__":
    unittest.main()
