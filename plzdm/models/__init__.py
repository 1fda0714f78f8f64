"""SQLAlchemy models for plzdm (PostgreSQL / SQLite)."""

from .base import Base
from .user import User
from .customer import Customer
from .product import Product
from .price import Price
from .subscription import Subscription
from .purchase import Purchase
from .receipt import Receipt
from .twitter_token import TwitterToken

__all__ = [
    "Base",
    "User",
    "Customer",
    "Product",
    "Price",
    "Subscription",
    "Purchase",
    "Receipt",
    "TwitterToken",
]
