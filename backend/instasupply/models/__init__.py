from .auth import Supplier, SessionToken
from .inventory import Product
from .orders import Order, OrderItem, OrderHistoryEntry, OrderSequence
from .notifications import Notification
from .reviews import Review
from .campaigns import Campaign, campaign_products
from .store import StoreSettings

__all__ = [
    'Supplier', 'SessionToken',
    'Product',
    'Order', 'OrderItem', 'OrderHistoryEntry', 'OrderSequence',
    'Notification',
    'Review',
    'Campaign', 'campaign_products',
    'StoreSettings',
]
