import unittest
from unittest.mock import patch

from services.budget_service import _find_budget as real_find
from tests._support import ApiTestCase


class BudgetRoutesTests(ApiTestCase):
    def test_upsert_reports_created_then_updated(self) -> None:
        r = self.client.post("/api/budgets", json={"category": "Groceries", "amount": 500, "month": "2026-10"})
        self.assertEqual(r.status_code, 201)
        first = r.json()
        self.assertEqual(first["category"], "Groceries")
        self.assertEqual(first["spent"], 0)

        r = self.client.post("/api/budgets", json={"category": "Groceries", "amount": 600, "month": "2026-10"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["id"], first["id"])
        self.assertEqual(r.json()["amount"], 600)

    def test_spent_counts_month_expenses_by_link_or_name(self) -> None:
        budget = self.client.post(
            "/api/budgets", json={"category": "Groceries", "amount": 400, "month": "2026-10"}
        ).json()
        groceries_id = budget["category_id"]

        for payload in (
            {"type": "expense", "amount": 120, "date": "2026-10-05", "category": "Groceries"},
            {"type": "expense", "amount": 80, "date": "2026-10-20", "category_id": groceries_id},
            {"type": "expense", "amount": 999, "date": "2026-09-30", "category": "Groceries"},
            {"type": "income", "amount": 50, "date": "2026-10-06", "category": "Groceries"},
        ):
            self.client.post("/api/transactions", json=payload)

        r = self.client.get("/api/budgets", params={"month": "2026-10"})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["month"], "2026-10")
        row = body["budgets"][0]
        self.assertEqual(row["spent"], 200)
        self.assertEqual(row["remaining"], 200)
        self.assertEqual(row["percent_used"], 50.0)

    def test_concurrent_first_insert_falls_back_to_update(self) -> None:
        first = self.client.post("/api/budgets", json={"category": "Rent", "amount": 1000, "month": "2026-10"}).json()

        calls = []

        def stale_then_fresh(*args, **kwargs):
            calls.append(args)
            # the first lookup misses the row another request already inserted
            return None if len(calls) == 1 else real_find(*args, **kwargs)

        with patch("services.budget_service._find_budget", side_effect=stale_then_fresh):
            r = self.client.post("/api/budgets", json={"category": "Rent", "amount": 1500, "month": "2026-10"})

        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["id"], first["id"])
        self.assertEqual(r.json()["amount"], 1500)
        self.assertEqual(len(calls), 2)
        self.assertEqual(len(self.client.get("/api/budgets", params={"month": "2026-10"}).json()["budgets"]), 1)

    def test_unknown_category(self) -> None:
        r = self.client.post("/api/budgets", json={"category": "Yachts", "amount": 10, "month": "2026-10"})
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["detail"], "Category not found")

    def test_validation(self) -> None:
        r = self.client.post("/api/budgets", json={"amount": 10, "month": "2026-10"})
        self.assertEqual(r.status_code, 400)

        r = self.client.post("/api/budgets", json={"category": "Rent", "amount": 10, "month": "2026-13"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["errors"][0]["field"], "month")

        self.assertEqual(self.client.get("/api/budgets", params={"month": "Oct"}).status_code, 400)

    def test_update_and_delete(self) -> None:
        budget = self.client.post("/api/budgets", json={"category": "Rent", "amount": 1000, "month": "2026-10"}).json()

        r = self.client.put(f"/api/budgets/{budget['id']}", json={"amount": 1200})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["amount"], 1200)

        r = self.client.delete(f"/api/budgets/{budget['id']}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["message"], "Budget deleted successfully")
        self.assertEqual(self.client.put(f"/api/budgets/{budget['id']}", json={"amount": 5}).status_code, 404)

    def test_budgets_are_per_user(self) -> None:
        budget = self.client.post("/api/budgets", json={"category": "Rent", "amount": 1000, "month": "2026-10"}).json()
        self.login_as(self.make_user("bob@example.com"))
        self.assertEqual(self.client.delete(f"/api/budgets/{budget['id']}").status_code, 404)
        self.assertEqual(self.client.get("/api/budgets", params={"month": "2026-10"}).json()["budgets"], [])


if __name__ == "__main__":
    unittest.main()
