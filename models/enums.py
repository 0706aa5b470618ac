from enum import Enum


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"

    @property
    def group(self) -> "CategoryGroup":
        return CategoryGroup(self.value.capitalize())


class CategoryGroup(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"
    INVESTMENT = "Investment"

    @classmethod
    def normalize(cls, value: str) -> "CategoryGroup":
        """Accept any capitalisation ("income", "EXPENSE") of a known group."""
        cleaned = (value or "").strip().capitalize()
        return cls(cleaned)


class TransactionStatus(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
