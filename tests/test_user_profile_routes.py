import unittest

from database import SessionLocal
from models.budget import Budget
from models.category import Category
from models.stock import Stock
from models.transaction import Transaction
from models.user import User
from tests._support import ApiTestCase


class UserProfileRoutesTests(ApiTestCase):
    def test_get_and_update_profile(self) -> None:
        r = self.client.get("/api/user/profile")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["email"], "alice@example.com")

        r = self.client.put("/api/user/profile", json={"full_name": "Alice Cooper", "email": "ALICE@new.example"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["full_name"], "Alice Cooper")
        self.assertEqual(r.json()["user"]["email"], "alice@new.example")

    def test_email_taken_by_someone_else(self) -> None:
        self.make_user("bob@example.com")
        r = self.client.put("/api/user/profile", json={"email": "bob@example.com"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["detail"], "Email already in use")

    def test_delete_account_removes_everything_it_owns(self) -> None:
        self.client.post("/api/transactions", json={
            "type": "expense", "amount": 42, "date": "2026-10-02", "category": "Groceries",
        })
        self.client.post("/api/budgets", json={"category": "Groceries", "amount": 300, "month": "2026-10"})
        self.client.post("/api/stocks", json={"symbol": "INFY", "quantity": 1, "buy_price": 10})

        r = self.client.delete("/api/user/profile")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["message"], "Account deleted successfully")

        db = SessionLocal()
        try:
            uid = self.user.id
            self.assertIsNone(db.get(User, uid))
            for model in (Transaction, Category, Budget, Stock):
                self.assertEqual(db.query(model).filter(model.user_id == uid).count(), 0, model.__name__)
        finally:
            db.close()

        self.assertEqual(self.client.get("/api/user/profile").status_code, 401)


if __name__ == "__main__":
    unittest.main()
