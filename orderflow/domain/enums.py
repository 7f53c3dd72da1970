# orderflow/domain/enums.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

# paid_at is stamped the first time an order reaches one of these
PAID_STATUSES = frozenset({OrderStatus.PROCESSING, OrderStatus.SHIPPED})


class AccountKind(str, Enum):
    REGISTERED = "registered"
    GUEST = "guest"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    TEST = "test"
