from .auth import User, SessionToken
from .organizations import Organization
from .catalog import Product
from .orders import Order, OrderItem
from .donations import Donation
from .audit import AuditEvent
from .feedback import Rating, Comment

__all__ = [
    'User', 'SessionToken',
    'Organization',
    'Product',
    'Order', 'OrderItem',
    'Donation',
    'AuditEvent',
    'Rating', 'Comment',
]
