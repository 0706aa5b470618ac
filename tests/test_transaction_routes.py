import unittest

from tests._support import ApiTestCase


def _payload(**overrides):
    data = {
        "type": "expense",
        "amount": 120.5,
        "date": "2026-10-05",
        "category": "Groceries",
        "notes": "weekly market run",
    }
    data.update(overrides)
    return data


class TransactionRoutesTests(ApiTestCase):
    def test_create_read_update_delete(self) -> None:
        r = self.client.post("/api/transactions", json=_payload())
        self.assertEqual(r.status_code, 201)
        created = r.json()["transaction"]
        self.assertEqual(created["type"], "expense")
        self.assertEqual(created["category_group"], "Expense")
        self.assertEqual(created["amount"], 120.5)
        tx_id = created["id"]

        r = self.client.get(f"/api/transactions/{tx_id}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["transaction"]["notes"], "weekly market run")

        r = self.client.put(f"/api/transactions/{tx_id}", json=_payload(amount=99, category="Rent"))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["transaction"]["amount"], 99)
        self.assertEqual(r.json()["transaction"]["category"], "Rent")

        r = self.client.delete(f"/api/transactions/{tx_id}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["message"], "Transaction deleted successfully")
        self.assertEqual(self.client.get(f"/api/transactions/{tx_id}").status_code, 404)

    def test_type_and_group_are_normalized(self) -> None:
        r = self.client.post("/api/transactions", json=_payload(type="INCOME", category="Salary", category_group="income"))
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["transaction"]["type"], "income")
        self.assertEqual(r.json()["transaction"]["category_group"], "Income")

    def test_linked_category_fills_name_and_group(self) -> None:
        categories = self.client.get("/api/categories", params={"category_group": "Investment"}).json()["categories"]
        gold = next(c for c in categories if c["name"] == "Gold")

        r = self.client.post("/api/transactions", json=_payload(type="investment", category=None, category_id=gold["id"]))
        self.assertEqual(r.status_code, 201)
        tx = r.json()["transaction"]
        self.assertEqual(tx["category"], "Gold")
        self.assertEqual(tx["category_group"], "Investment")
        self.assertEqual(tx["category_id"], gold["id"])

    def test_invalid_payload_lists_each_field(self) -> None:
        r = self.client.post("/api/transactions", json={"type": "gift", "amount": -5, "date": "not-a-date"})
        self.assertEqual(r.status_code, 400)
        body = r.json()
        self.assertEqual(body["detail"], "Validation failed")
        self.assertEqual(sorted(e["field"] for e in body["errors"]), ["amount", "date", "type"])

    def test_other_users_transactions_are_invisible(self) -> None:
        bob = self.make_user("bob@example.com")
        self.login_as(bob)
        tx_id = self.client.post("/api/transactions", json=_payload()).json()["transaction"]["id"]

        self.login_as(self.user)
        self.assertEqual(self.client.get(f"/api/transactions/{tx_id}").status_code, 404)
        self.assertEqual(self.client.put(f"/api/transactions/{tx_id}", json=_payload()).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/transactions/{tx_id}").status_code, 404)
        self.assertEqual(self.client.get("/api/transactions").json()["pagination"]["total"], 0)

    def test_foreign_category_id_is_rejected(self) -> None:
        bob = self.make_user("bob@example.com")
        self.login_as(bob)
        bob_category = self.client.get("/api/categories").json()["categories"][0]["id"]

        self.login_as(self.user)
        r = self.client.post("/api/transactions", json=_payload(category_id=bob_category))
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["detail"], "Category not found")

    def test_pagination_and_sorting(self) -> None:
        for day in range(1, 13):
            self.client.post("/api/transactions", json=_payload(amount=day, date=f"2026-10-{day:02d}"))

        r = self.client.get("/api/transactions", params={"limit": 5, "page": 3})
        body = r.json()
        self.assertEqual(body["pagination"], {"total": 12, "pages": 3, "page": 3, "limit": 5})
        # newest first by default
        self.assertEqual([t["amount"] for t in body["transactions"]], [2, 1])

        r = self.client.get("/api/transactions", params={"sort_by": "amount", "order": "asc", "limit": 3})
        self.assertEqual([t["amount"] for t in r.json()["transactions"]], [1, 2, 3])

    def test_filters(self) -> None:
        self.client.post("/api/transactions", json=_payload(amount=50, date="2026-09-01"))
        self.client.post("/api/transactions", json=_payload(type="income", amount=900, category="Salary", notes="october pay"))
        self.client.post("/api/transactions", json=_payload(type="investment", amount=300, category="Gold", status="terminated"))

        def total(**params):
            return self.client.get("/api/transactions", params=params).json()["pagination"]["total"]

        self.assertEqual(total(type="income"), 1)
        self.assertEqual(total(category="Groceries"), 1)
        self.assertEqual(total(status="terminated"), 1)
        self.assertEqual(total(start_date="2026-10-01"), 2)
        self.assertEqual(total(min_amount=100, max_amount=500), 1)
        self.assertEqual(total(description="PAY"), 1)

    def test_description_wildcards_match_literally(self) -> None:
        self.client.post("/api/transactions", json=_payload(notes="100% organic"))
        self.client.post("/api/transactions", json=_payload(notes="1000 organic"))
        self.client.post("/api/transactions", json=_payload(notes="tax_refund"))
        self.client.post("/api/transactions", json=_payload(notes="taxXrefund"))

        def notes(description):
            rows = self.client.get("/api/transactions", params={"description": description}).json()["transactions"]
            return sorted(t["notes"] for t in rows)

        self.assertEqual(notes("100%"), ["100% organic"])
        self.assertEqual(notes("tax_"), ["tax_refund"])
        self.assertEqual(notes("organic"), ["100% organic", "1000 organic"])

    def test_limit_is_capped(self) -> None:
        r = self.client.get("/api/transactions", params={"limit": 500})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["errors"][0]["field"], "limit")


if __name__ == "__main__":
    unittest.main()
