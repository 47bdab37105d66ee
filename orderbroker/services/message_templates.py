# orderbroker/services/message_templates.py
"""
Szablony WhatsApp (zatwierdzone po stronie Meta), wybierane po aktualnym
statusie zamowienia. Kolejnosc parametrow musi odpowiadac {{1}}, {{2}}...
w szablonie.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List

from orderbroker.data.models.order import OrderModel
from orderbroker.domain.enums import OrderStatus
from orderbroker.utils.settings import WAREHOUSE_CITY


def order_reference(order_id: int) -> str:
    return f"TR{order_id:05d}"


def format_date(moment: datetime) -> str:
    return f"{moment:%B} {moment.day}, {moment.year}"


def format_datetime(moment: datetime) -> str:
    return f"{format_date(moment)} at {moment:%I:%M %p}"


def _title(order: OrderModel) -> str:
    return order.title or "your order"


def _processing(order: OrderModel, now: datetime) -> List[str]:
    return [
        order.user.name,
        order_reference(order.id),
        _title(order),
        f"${order.price:.2f}",
        format_date(now),
    ]


def _cancelled(order: OrderModel, now: datetime) -> List[str]:
    return [
        order.user.name,
        order_reference(order.id),
        _title(order),
        format_datetime(now),
    ]


def _warehouse(order: OrderModel, now: datetime) -> List[str]:
    return [
        order.user.name,
        order_reference(order.id),
        _title(order),
        format_date(now),
        WAREHOUSE_CITY,
    ]


@dataclass(frozen=True)
class MessageTemplate:
    status: OrderStatus
    name: str
    parameters: Callable[[OrderModel, datetime], List[str]]

    def components(self, order: OrderModel, now: datetime) -> List[dict]:
        return [
            {
                "type": "body",
                "parameters": [
                    {"type": "text", "text": text}
                    for text in self.parameters(order, now)
                ],
            }
        ]


TEMPLATES: Dict[str, MessageTemplate] = {
    t.status.value: t
    for t in (
        MessageTemplate(OrderStatus.PROCESSING, "order_processing", _processing),
        MessageTemplate(OrderStatus.CANCELLED, "order_cancellation_notice", _cancelled),
        MessageTemplate(OrderStatus.DELIVERED_TO_WAREHOUSE, "warehouse_delivery_confirmation", _warehouse),
    )
}


def template_for(status: str) -> MessageTemplate | None:
    return TEMPLATES.get(status)
