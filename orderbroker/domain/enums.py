# orderbroker/domain/enums.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    CONFIRMED = "CONFIRMED"
    PURCHASED = "PURCHASED"
    SHIPPED = "SHIPPED"
    RECEIVED_IN_TURKEY = "RECEIVED_IN_TURKEY"
    DELIVERED_TO_WAREHOUSE = "DELIVERED_TO_WAREHOUSE"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class Role(str, Enum):
    ADMIN = "ADMIN"
    WORKER = "WORKER"
    CUSTOMER = "CUSTOMER"


STAFF_ROLES = frozenset({Role.ADMIN, Role.WORKER})

# statusy ktore moze ustawic tylko admin/worker
ADMIN_ONLY_STATUSES = frozenset({
    OrderStatus.PURCHASED,
    OrderStatus.RECEIVED_IN_TURKEY,
    OrderStatus.DELIVERED_TO_WAREHOUSE,
})

# zmiana na te statusy wysyla wiadomosc whatsapp
NOTIFICATION_STATUSES = frozenset({
    OrderStatus.CANCELLED,
    OrderStatus.PROCESSING,
    OrderStatus.DELIVERED_TO_WAREHOUSE,
})

ACTIVE_STATUSES = (
    OrderStatus.CONFIRMED,
    OrderStatus.PURCHASED,
    OrderStatus.RECEIVED_IN_TURKEY,
    OrderStatus.DELIVERED_TO_WAREHOUSE,
)

PASSIVE_STATUSES = (
    OrderStatus.DELIVERED,
    OrderStatus.DELIVERED_TO_WAREHOUSE,
    OrderStatus.CANCELLED,
    OrderStatus.RETURNED,
)

STATUS_GROUPS = {
    "ACTIVE": ACTIVE_STATUSES,
    "PASSIVE": PASSIVE_STATUSES,
}

DEFAULT_TRACKED_STATUSES = (
    OrderStatus.RECEIVED_IN_TURKEY,
    OrderStatus.PURCHASED,
    OrderStatus.DELIVERED_TO_WAREHOUSE,
)
