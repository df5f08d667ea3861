# Models
from .book import Book
from .order import Order, OrderStatus
from .order_item import OrderItem

__all__ = [
    "Book",
    "Order",
    "OrderStatus",
    "OrderItem"
]
