# orderbroker/services/invoice_service.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from orderbroker.data.models.invoice import InvoiceModel
from orderbroker.data.models.order import OrderModel
from orderbroker.domain.errors import Forbidden, InvalidArgument, NotFound
from orderbroker.domain.schemas import InvoiceGenerate
from orderbroker.repos.invoice_repo import InvoiceRepo
from orderbroker.repos.order_repo import OrderRepo
from orderbroker.services.token_service import Principal
from orderbroker.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def order_total(order: OrderModel) -> Decimal:
    unit = order.price + order.shipping_price + order.local_shipping_price
    return unit * order.quantity


def invoice_number_for(moment: datetime) -> str:
    # INV-RRRRMMDD-<ostatnie 6 cyfr timestampu w ms>
    millis = int(moment.timestamp() * 1000)
    return f"INV-{moment:%Y%m%d}-{str(millis)[-6:]}"


def serialize_invoice(invoice: InvoiceModel) -> Dict[str, Any]:
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "user_id": invoice.user_id,
        "date": invoice.date,
        "due_date": invoice.due_date,
        "status": invoice.status,
        "total": invoice.total,
        "payment_method": invoice.payment_method,
        "notes": invoice.notes,
        "created_at": invoice.created_at,
        "user": {
            "name": invoice.user.name,
            "phone_number": invoice.user.phone_number,
        } if invoice.user else None,
        "orders": [
            {
                "id": o.id,
                "title": o.title,
                "size": o.size,
                "color": o.color,
                "quantity": o.quantity,
                "price": o.price,
                "shipping_price": o.shipping_price,
                "local_shipping_price": o.local_shipping_price,
                "image_url": o.image_url,
            }
            for o in invoice.orders
        ],
    }


class InvoiceService:
    """
    Faktury dla klientow, tylko admin/worker.

    commands: generate_invoice
    query: get_invoice, list_invoices
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepo(db)
        self.orders = OrderRepo(db)

    def generate_invoice(self, caller: Principal, payload: InvoiceGenerate) -> Dict[str, Any]:
        """
        Use Case: faktura z zamowien.

        1. Wszystkie zamowienia musza istniec
        2. Wszystkie naleza do jednego klienta (on jest odbiorca faktury)
        3. Suma = (cena + wysylka + wysylka lokalna) * ilosc, po wszystkich zamowieniach
        """
        if not caller.is_staff:
            raise Forbidden("Only administrators and workers can generate invoices")

        order_ids = list(dict.fromkeys(payload.order_ids))
        orders = self.orders.get_orders(order_ids)
        if not orders:
            raise NotFound("No orders found")

        missing = sorted(set(order_ids) - {o.id for o in orders})
        if missing:
            raise NotFound(f"Orders not found: {missing}")

        owners = {o.user_id for o in orders}
        if len(owners) > 1:
            raise InvalidArgument("All orders on an invoice must belong to the same customer")

        total = sum((order_total(o) for o in orders), Decimal("0")).quantize(CENT)
        now = datetime.now(timezone.utc)

        invoice = InvoiceModel(
            invoice_number=self._next_number(now),
            user_id=orders[0].user_id,
            date=now,
            due_date=payload.due_date,
            status="PENDING",
            total=total,
            payment_method=payload.payment_method,
            notes=payload.notes,
            orders=orders,
        )

        try:
            self.repo.create_invoice(invoice)
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Invoice {invoice.invoice_number} generated for user {invoice.user_id} "
            f"by user {caller.user_id}, orders {order_ids}, total {total}"
        )
        return serialize_invoice(invoice)

    def _next_number(self, now: datetime) -> str:
        # dwie faktury w tej samej milisekundzie -> przesuwamy o 1 ms
        number = invoice_number_for(now)
        while self.repo.number_taken(number):
            now += timedelta(milliseconds=1)
            number = invoice_number_for(now)
        return number

    # queries
    def get_invoice(self, caller: Principal, invoice_id: int) -> Dict[str, Any]:
        if not caller.is_staff:
            raise Forbidden("Unauthorized")

        invoice = self.repo.get_invoice(invoice_id)
        if not invoice:
            raise NotFound("Invoice not found")
        return serialize_invoice(invoice)

    def list_invoices(self, caller: Principal) -> List[Dict[str, Any]]:
        if not caller.is_staff:
            raise Forbidden("Only administrators and workers can access invoices")
        return [serialize_invoice(i) for i in self.repo.list_invoices()]
