import unittest

from fastapi.testclient import TestClient

from main import app
from routers.stock_routes import get_quote_service
from services.quote_service import QuoteServiceError
from tests._support import ApiTestCase


class StockRoutesTests(ApiTestCase):
    def test_buy_merges_into_existing_lot(self) -> None:
        r = self.client.post("/api/stocks", json={"symbol": "infy", "quantity": 10, "buy_price": 100, "broker": "Zerodha"})
        self.assertEqual(r.status_code, 201)
        self.assertFalse(r.json()["averaged"])
        self.assertEqual(r.json()["stock"]["symbol"], "INFY")
        first_id = r.json()["stock"]["id"]

        r = self.client.post("/api/stocks", json={"symbol": "INFY", "quantity": 10, "buy_price": 200, "broker": "Groww"})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertTrue(body["averaged"])
        self.assertEqual(body["message"], "Stock averaged: 20 shares at 150.00 average price")
        self.assertEqual(body["stock"]["id"], first_id)
        self.assertEqual(body["stock"]["quantity"], 20)
        self.assertEqual(body["stock"]["buy_price"], 150)
        self.assertEqual(body["stock"]["total_value"], 3000)
        self.assertEqual(body["stock"]["broker"], "Zerodha, Groww")
        self.assertEqual(len(self.client.get("/api/stocks").json()["stocks"]), 1)

    def test_sell_is_recorded_as_its_own_lot(self) -> None:
        self.client.post("/api/stocks", json={"symbol": "TCS", "quantity": 10, "buy_price": 100, "date": "2026-01-10"})
        r = self.client.post(
            "/api/stocks",
            json={"symbol": "TCS", "quantity": 4, "buy_price": 100, "sell_price": 130, "type": "sell", "date": "2026-02-10"},
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["stock"]["type"], "SELL")

        holdings = self.client.get("/api/stocks/holdings").json()
        self.assertEqual(len(holdings["items"]), 1)
        self.assertEqual(holdings["items"][0]["quantity"], 6)
        self.assertEqual(holdings["totals"]["total_invested"], 600)

    def test_same_day_sell_replays_after_its_buy(self) -> None:
        for date in (None, "2026-03-02"):
            with self.subTest(date=date):
                for stock in self.client.get("/api/stocks").json()["stocks"]:
                    self.client.delete(f"/api/stocks/{stock['id']}")
                self.client.post("/api/stocks", json={"symbol": "TCS", "quantity": 10, "buy_price": 100, "date": date})
                self.client.post(
                    "/api/stocks",
                    json={"symbol": "TCS", "quantity": 4, "buy_price": 100, "sell_price": 120, "type": "SELL", "date": date},
                )

                item = self.client.get("/api/stocks/holdings").json()["items"][0]
                self.assertEqual(item["quantity"], 6)
                self.assertEqual(item["total_invested"], 600)
                self.assertEqual(item["oversold_quantity"], 0)

                metrics = self.client.get("/api/analytics").json()["metrics"]
                self.assertEqual(metrics["stock_investments"], 600)
                invested = self.client.get("/api/investments").json()["total_invested"]
                self.assertEqual(invested, 600)

    def test_invalid_stock_payload(self) -> None:
        r = self.client.post("/api/stocks", json={"symbol": "", "quantity": 0, "buy_price": -1})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(sorted(e["field"] for e in r.json()["errors"]), ["buy_price", "quantity", "symbol"])

    def test_update_and_delete(self) -> None:
        stock = self.client.post("/api/stocks", json={"symbol": "WIPRO", "quantity": 5, "buy_price": 400}).json()["stock"]

        r = self.client.put(f"/api/stocks/{stock['id']}", json={"symbol": "WIPRO", "quantity": 6, "buy_price": 410})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["stock"]["total_value"], 2460)

        self.assertEqual(self.client.delete(f"/api/stocks/{stock['id']}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/stocks/{stock['id']}").status_code, 404)

    def test_refresh_prices(self) -> None:
        self.client.post("/api/stocks", json={"symbol": "INFY", "quantity": 2, "buy_price": 1400})
        self.client.post("/api/stocks", json={"symbol": "500325", "quantity": 1, "buy_price": 2500})
        self.client.post("/api/stocks", json={"symbol": "DELISTED", "quantity": 1, "buy_price": 10})
        self.quotes.prices = {"INFY.NS": 1500.0, "INFY": 1500.0, "500325.BO": 2900.0, "500325": 2900.0}

        r = self.client.post("/api/stocks/refresh-prices")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["message"], "Prices updated successfully")
        self.assertEqual(body["prices_updated"], 2)
        prices = {s["symbol"]: s["current_price"] for s in body["stocks"]}
        self.assertEqual(prices, {"INFY": 1500.0, "500325": 2900.0, "DELISTED": None})

        holdings = self.client.get("/api/stocks/holdings").json()
        infy = next(it for it in holdings["items"] if it["symbol"] == "INFY")
        self.assertEqual(infy["current_value"], 3000.0)

    def test_refresh_without_stocks(self) -> None:
        r = self.client.post("/api/stocks/refresh-prices")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"message": "No stocks to update", "stocks": [], "prices_updated": 0})

    def test_refresh_upstream_failure(self) -> None:
        self.client.post("/api/stocks", json={"symbol": "INFY", "quantity": 2, "buy_price": 1400})
        self.quotes.error = QuoteServiceError("Quote request failed: 503")

        r = self.client.post("/api/stocks/refresh-prices")
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json()["detail"], "Failed to fetch prices")

    def test_unexpected_error_is_opaque(self) -> None:
        def boom():
            raise RuntimeError("secret internals")

        app.dependency_overrides[get_quote_service] = boom
        client = TestClient(app, raise_server_exceptions=False)
        client.headers.update(self.client.headers)
        try:
            r = client.post("/api/stocks/refresh-prices")
        finally:
            client.close()
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"detail": "Internal server error"})


if __name__ == "__main__":
    unittest.main()
