from .auth import User, USER_ROLES
from .inventory import Product, Inventory
from .orders import Order, OrderItem, ORDER_STATUSES
from .deliveries import Delivery, DELIVERY_STATUSES

__all__ = [
    'User', 'USER_ROLES',
    'Product', 'Inventory',
    'Order', 'OrderItem', 'ORDER_STATUSES',
    'Delivery', 'DELIVERY_STATUSES',
]
