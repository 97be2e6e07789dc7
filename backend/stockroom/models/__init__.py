from .catalog import Category, Brand, Firm, Product, PurchaseHistoryEntry, SellHistoryEntry
from .trading import Purchase, Sell
from .auth import ROLES, User, SessionToken
from .security import SecurityEvent

__all__ = [
    'Category', 'Brand', 'Firm',
    'Product', 'PurchaseHistoryEntry', 'SellHistoryEntry',
    'Purchase', 'Sell',
    'ROLES', 'User', 'SessionToken',
    'SecurityEvent',
]
