# orderbroker/services/order_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from orderbroker.data.models.order import OrderModel
from orderbroker.data.models.order_status_history import OrderStatusHistoryModel
from orderbroker.domain.enums import (
    ADMIN_ONLY_STATUSES,
    DEFAULT_TRACKED_STATUSES,
    NOTIFICATION_STATUSES,
    STATUS_GROUPS,
    OrderStatus,
)
from orderbroker.domain.errors import Forbidden, InvalidArgument, NotFound
from orderbroker.domain.schemas import OrderCreate, OrderUpdate
from orderbroker.repos.history_repo import StatusHistoryRepo
from orderbroker.repos.order_repo import OrderRepo
from orderbroker.repos.user_repo import UserRepo
from orderbroker.services.notification_service import NotificationQueue
from orderbroker.services.token_service import Principal
from orderbroker.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_order(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "title": order.title,
        "size": order.size,
        "color": order.color,
        "quantity": order.quantity,
        "price": order.price,
        "shipping_price": order.shipping_price,
        "local_shipping_price": order.local_shipping_price,
        "status": order.status,
        "order_number": order.order_number,
        "prepaid": order.prepaid,
        "product_link": order.product_link,
        "image_url": order.image_url,
        "notes": order.notes,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "user": {
            "name": order.user.name,
            "phone_number": order.user.phone_number,
        } if order.user else None,
    }


def serialize_history(entry: OrderStatusHistoryModel) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "order_id": entry.order_id,
        "user_id": entry.user_id,
        "status": entry.status,
        "notes": entry.notes,
        "created_at": entry.created_at,
        "user": {"name": entry.user.name} if entry.user else None,
    }


def describe_update(status: str | None, order_number: str | None, prepaid: bool | None) -> str:
    note = f"Order status updated to {status}" if status else "Order updated"
    if order_number:
        note += f" with order number {order_number}"
    if prepaid is not None:
        note += f" and marked as {'prepaid' if prepaid else 'not prepaid'}"
    return note


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.

    commands: create_order, update_order (zmiana + wpis historii w jednej transakcji),
              mark_delivered_by_tracking
    query: get_order, list_orders, order_stats
    """

    def __init__(self, db: Session, notifications: NotificationQueue | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.history = StatusHistoryRepo(db)
        self.users = UserRepo(db)
        self.notifications = notifications

    # commands
    def create_order(self, caller: Principal, payload: OrderCreate) -> Dict[str, Any]:
        # staff moze zalozyc zamowienie w imieniu klienta
        if caller.is_staff and payload.user_id:
            owner_id = payload.user_id
            if not self.users.get_user(owner_id):
                raise NotFound("User not found")
        else:
            owner_id = caller.user_id

        title = payload.title or f"Order-{self.repo.count_orders() + 1}"

        order = OrderModel(
            user_id=owner_id,
            title=title,
            size=payload.size or "N/A",
            color=payload.color or "N/A",
            quantity=payload.quantity or 1,
            price=Decimal("0"),
            shipping_price=payload.shipping_price or Decimal("0"),
            local_shipping_price=payload.local_shipping_price or Decimal("0"),
            status=OrderStatus.PENDING.value,
            product_link=payload.product_link or "",
            image_url=payload.image_url or "/logo.png",
            notes=payload.notes or "",
        )

        try:
            self.repo.add_order(order)
            self.history.append(
                order_id=order.id,
                user_id=caller.user_id,
                status=OrderStatus.PENDING.value,
                notes="Order created",
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self.repo.refresh(order)
        logger.info(f"Order {order.id} created for user {owner_id} by user {caller.user_id}")
        return serialize_order(order)

    def update_order(self, order_id: int, caller: Principal, payload: OrderUpdate) -> Dict[str, Any]:
        """
        Use Case: zmiana zamówienia.

        1. Zamowienie musi istniec
        2. Klient nie ustawi statusow admin-only i zmienia tylko swoje zamowienia
        3. PURCHASED wymaga numeru zamowienia (juz zapisanego albo w payloadzie)
        4. Zmiana pol + wpis historii w jednej transakcji
        5. Dla wybranych statusow job do kolejki WhatsApp (bledy tylko logujemy)
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Order not found")

        changes = payload.changes()

        # pusty status / numer traktujemy jak brak pola
        status = changes.pop("status", None)
        order_number = changes.pop("order_number", None) or None

        if status in ADMIN_ONLY_STATUSES and not caller.is_staff:
            raise Forbidden("Only administrators and workers can perform this action")

        if not caller.is_staff and order.user_id != caller.user_id:
            raise Forbidden("You can only update your own orders")

        target_status = status.value if status else order.status
        if target_status == OrderStatus.PURCHASED.value and not (order_number or order.order_number):
            raise InvalidArgument("Order number is required when marking as purchased")

        for field, value in changes.items():
            if value is None:
                raise InvalidArgument(f"{field} cannot be null")

        prepaid = changes.get("prepaid")

        try:
            if status:
                order.status = status.value
            if order_number:
                order.order_number = order_number
            for field, value in changes.items():
                setattr(order, field, value)

            self.history.append(
                order_id=order.id,
                user_id=caller.user_id,
                status=status.value if status else OrderStatus.PENDING.value,
                notes=describe_update(status.value if status else None, order_number, prepaid),
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self.repo.refresh(order)
        logger.info(f"Order {order.id} updated by user {caller.user_id} ({caller.role.value}), status {order.status}")

        if status in NOTIFICATION_STATUSES:
            self._notify(order.id)

        return serialize_order(order)

    def mark_delivered_by_tracking(self, caller: Principal, order_number: str) -> Dict[str, Any]:
        """
        Use Case: skan paczki w magazynie.
        Szukamy zamowienia po numerze (tracking) i ustawiamy DELIVERED_TO_WAREHOUSE.
        """
        if not caller.is_staff:
            raise Forbidden("Only administrators and workers can update tracking status")

        order_number = (order_number or "").strip()
        if not order_number:
            raise InvalidArgument("Tracking number is required")

        order = self.repo.get_by_order_number(order_number)
        if not order:
            raise NotFound("Order not found with this tracking number")

        status = OrderStatus.DELIVERED_TO_WAREHOUSE
        try:
            order.status = status.value
            self.history.append(
                order_id=order.id,
                user_id=caller.user_id,
                status=status.value,
                notes=f"Order delivered to warehouse with tracking number {order_number}",
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self.repo.refresh(order)
        logger.info(f"Order {order.id} scanned into warehouse by user {caller.user_id} (tracking {order_number})")

        self._notify(order.id)
        return serialize_order(order)

    def _notify(self, order_id: int) -> None:
        if self.notifications is None:
            logger.warning(f"No notification queue configured, order {order_id} not notified")
            return
        try:
            self.notifications.enqueue(order_id)
        except Exception as e:
            # zamowienie juz zapisane, powiadomienie jest best-effort
            logger.error(f"Error sending WhatsApp notification for order {order_id}: {e}")

    # queries
    def get_order(self, order_id: int, caller: Principal) -> Dict[str, Any]:
        order = self.repo.get_order_with_owner(order_id)

        # klient nie widzi cudzych zamowien, dla niego ich "nie ma"
        if not order or (not caller.is_staff and order.user_id != caller.user_id):
            raise NotFound("Order not found")

        result = serialize_order(order)
        result["status_history"] = [
            serialize_history(entry) for entry in self.history.list_for_order(order.id)
        ]
        return result

    def list_orders(self, caller: Principal, status: str | None = None) -> List[Dict[str, Any]]:
        statuses = None
        if status and status != "ALL":
            if status in STATUS_GROUPS:
                statuses = [s.value for s in STATUS_GROUPS[status]]
            else:
                try:
                    statuses = [OrderStatus(status).value]
                except ValueError:
                    raise InvalidArgument(f"Unknown status filter: {status}")

        orders = self.repo.list_orders(
            user_id=None if caller.is_staff else caller.user_id,
            statuses=statuses,
        )
        return [serialize_order(o) for o in orders]

    def order_stats(self, caller: Principal, user_id: int, status: OrderStatus | None = None) -> Dict[str, int]:
        if not caller.is_staff:
            raise Forbidden("Unauthorized access")

        tracked = [status.value] if status else [s.value for s in DEFAULT_TRACKED_STATUSES]
        counts = self.repo.count_by_status(user_id, tracked)
        return {s: counts.get(s, 0) for s in tracked}
