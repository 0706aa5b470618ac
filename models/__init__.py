from .user import User
from .category import Category
from .transaction import Transaction
from .budget import Budget
from .stock import Stock
