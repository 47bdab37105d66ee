from decimal import Decimal

import pytest

from orderbroker.data.models import OrderModel, OrderStatusHistoryModel
from orderbroker.domain.enums import OrderStatus
from orderbroker.domain.errors import Forbidden, InvalidArgument, NotFound
from orderbroker.domain.schemas import OrderCreate, OrderUpdate
from orderbroker.services.order_service import OrderService, describe_update


def history_for(db, order_id):
    db.expire_all()
    return (
        db.query(OrderStatusHistoryModel)
        .filter(OrderStatusHistoryModel.order_id == order_id)
        .order_by(OrderStatusHistoryModel.id)
        .all()
    )


@pytest.fixture
def service(db, queue):
    return OrderService(db, notifications=queue)


def test_purchased_requires_order_number(service, make_order, principals, db):
    order = make_order()

    with pytest.raises(InvalidArgument):
        service.update_order(order.id, principals["admin"], OrderUpdate(status="PURCHASED"))

    assert history_for(db, order.id) == []
    db.refresh(order)
    assert order.status == "PENDING"


def test_purchased_with_order_number(service, make_order, principals):
    order = make_order()

    result = service.update_order(
        order.id,
        principals["worker"],
        OrderUpdate(status="PURCHASED", order_number="TR-9911"),
    )

    assert result["status"] == "PURCHASED"
    assert result["order_number"] == "TR-9911"


def test_purchased_accepts_stored_order_number(service, make_order, principals):
    order = make_order(order_number="TY-1")

    result = service.update_order(order.id, principals["admin"], OrderUpdate(status="PURCHASED"))

    assert result["status"] == "PURCHASED"
    assert result["order_number"] == "TY-1"


def test_empty_order_number_counts_as_missing(service, make_order, principals):
    order = make_order()

    with pytest.raises(InvalidArgument):
        service.update_order(
            order.id,
            principals["admin"],
            OrderUpdate.model_validate({"status": "PURCHASED", "orderNumber": ""}),
        )


@pytest.mark.parametrize("status", ["PURCHASED", "RECEIVED_IN_TURKEY", "DELIVERED_TO_WAREHOUSE"])
def test_customer_cannot_set_staff_statuses(service, make_order, principals, db, status):
    order = make_order(owner="customer")

    with pytest.raises(Forbidden):
        service.update_order(
            order.id,
            principals["customer"],
            OrderUpdate(status=status, order_number="X1"),
        )

    assert history_for(db, order.id) == []


def test_customer_cannot_update_foreign_order(service, make_order, principals):
    order = make_order(owner="other")

    with pytest.raises(Forbidden):
        service.update_order(order.id, principals["customer"], OrderUpdate(status="CANCELLED"))


def test_customer_can_cancel_own_order(service, make_order, principals, queue):
    order = make_order(owner="customer")

    result = service.update_order(order.id, principals["customer"], OrderUpdate(status="CANCELLED"))

    assert result["status"] == "CANCELLED"
    assert [job.order_id for job in queue.pending()] == [order.id]


def test_missing_order(service, principals):
    with pytest.raises(NotFound):
        service.update_order(999, principals["admin"], OrderUpdate(notes="x"))


def test_notes_only_update_keeps_other_fields(service, make_order, principals, db):
    order = make_order(status="CONFIRMED", quantity=3, price=Decimal("40.00"))

    result = service.update_order(
        order.id,
        principals["customer"],
        OrderUpdate.model_validate({"notes": "x"}),
    )

    assert result["notes"] == "x"
    assert result["status"] == "CONFIRMED"
    assert result["quantity"] == 3
    assert result["price"] == Decimal("40.00")


def test_each_update_appends_one_history_entry(service, make_order, principals, db):
    order = make_order()

    service.update_order(order.id, principals["admin"], OrderUpdate(notes="call customer"))
    assert [h.status for h in history_for(db, order.id)] == ["PENDING"]

    service.update_order(order.id, principals["admin"], OrderUpdate(status="CONFIRMED"))
    entries = history_for(db, order.id)
    assert [h.status for h in entries] == ["PENDING", "CONFIRMED"]
    assert entries[-1].user_id == principals["admin"].user_id
    assert entries[-1].notes == "Order status updated to CONFIRMED"


def test_numeric_fields_are_coerced(service, make_order, principals):
    order = make_order()

    result = service.update_order(
        order.id,
        principals["admin"],
        OrderUpdate.model_validate({"price": "19.99", "shippingPrice": 5, "quantity": "2"}),
    )

    assert result["price"] == Decimal("19.99")
    assert result["shipping_price"] == Decimal("5")
    assert result["quantity"] == 2


def test_explicit_null_is_rejected(service, make_order, principals, db):
    order = make_order()

    with pytest.raises(InvalidArgument):
        service.update_order(
            order.id,
            principals["admin"],
            OrderUpdate.model_validate({"title": None}),
        )

    assert history_for(db, order.id) == []


def test_prepaid_and_order_number_in_history_notes(service, make_order, principals, db):
    order = make_order()

    service.update_order(
        order.id,
        principals["admin"],
        OrderUpdate(status="PURCHASED", order_number="TR00042", prepaid=True),
    )

    entry = history_for(db, order.id)[-1]
    assert entry.notes == "Order status updated to PURCHASED with order number TR00042 and marked as prepaid"


def test_describe_update_without_status():
    assert describe_update(None, None, False) == "Order updated and marked as not prepaid"


def test_only_trigger_statuses_enqueue(service, make_order, principals, queue):
    order = make_order()

    service.update_order(order.id, principals["admin"], OrderUpdate(status="CONFIRMED"))
    service.update_order(order.id, principals["admin"], OrderUpdate(status="SHIPPED"))
    assert queue.pending() == []

    service.update_order(order.id, principals["admin"], OrderUpdate(status="DELIVERED_TO_WAREHOUSE"))
    service.update_order(order.id, principals["admin"], OrderUpdate(status="PROCESSING"))
    assert [job.order_id for job in queue.pending()] == [order.id, order.id]


def test_enqueue_failure_does_not_fail_update(db, make_order, principals):
    class BrokenQueue:
        def enqueue(self, order_id):
            raise ConnectionError("redis down")

    order = make_order()
    service = OrderService(db, notifications=BrokenQueue())

    result = service.update_order(order.id, principals["admin"], OrderUpdate(status="CANCELLED"))

    assert result["status"] == "CANCELLED"
    assert len(history_for(db, order.id)) == 1


def test_create_order_defaults(service, principals, db):
    result = service.create_order(principals["customer"], OrderCreate(productLink="https://example.com/p/5"))

    assert result["user_id"] == principals["customer"].user_id
    assert result["title"] == "Order-1"
    assert result["size"] == "N/A"
    assert result["color"] == "N/A"
    assert result["quantity"] == 1
    assert result["price"] == Decimal("0")
    assert result["status"] == "PENDING"
    assert result["image_url"] == "/logo.png"

    entries = history_for(db, result["id"])
    assert [(h.status, h.notes) for h in entries] == [("PENDING", "Order created")]


def test_staff_creates_order_for_customer(service, principals, db):
    result = service.create_order(principals["worker"], OrderCreate(userId=7, title="Jacket", quantity=2))

    assert result["user_id"] == 7
    assert result["user"]["name"] == "Aram"
    assert history_for(db, result["id"])[0].user_id == principals["worker"].user_id


def test_customer_cannot_create_for_someone_else(service, principals):
    result = service.create_order(principals["customer"], OrderCreate(userId=8))

    assert result["user_id"] == principals["customer"].user_id


def test_staff_create_for_unknown_user(service, principals):
    with pytest.raises(NotFound):
        service.create_order(principals["admin"], OrderCreate(userId=555))


def test_list_orders_scoped_by_role(service, make_order, principals):
    mine = make_order(owner="customer")
    make_order(owner="other")

    assert [o["id"] for o in service.list_orders(principals["customer"])] == [mine.id]
    assert len(service.list_orders(principals["admin"])) == 2


def test_list_orders_status_groups(service, make_order, principals):
    active = make_order(status="PURCHASED", order_number="A1")
    make_order(status="PENDING")
    cancelled = make_order(status="CANCELLED")

    assert [o["id"] for o in service.list_orders(principals["admin"], "ACTIVE")] == [active.id]
    assert [o["id"] for o in service.list_orders(principals["admin"], "PASSIVE")] == [cancelled.id]
    assert len(service.list_orders(principals["admin"], "ALL")) == 3

    with pytest.raises(InvalidArgument):
        service.list_orders(principals["admin"], "LOST")


def test_get_order_hides_foreign_orders(service, make_order, principals):
    order = make_order(owner="other")

    with pytest.raises(NotFound):
        service.get_order(order.id, principals["customer"])


def test_get_order_history_newest_first(service, make_order, principals):
    order = make_order()
    service.update_order(order.id, principals["admin"], OrderUpdate(status="CONFIRMED"))
    service.update_order(order.id, principals["worker"], OrderUpdate(status="PURCHASED", order_number="N1"))

    detail = service.get_order(order.id, principals["customer"])

    assert [h["status"] for h in detail["status_history"]] == ["PURCHASED", "CONFIRMED"]
    assert detail["status_history"][0]["user"] == {"name": "Worker"}


def test_order_stats_zero_filled(service, make_order, principals):
    make_order(status="PURCHASED", order_number="A")
    make_order(status="PURCHASED", order_number="B")
    make_order(status="CANCELLED")

    stats = service.order_stats(principals["admin"], user_id=7)
    assert stats == {"RECEIVED_IN_TURKEY": 0, "PURCHASED": 2, "DELIVERED_TO_WAREHOUSE": 0}

    assert service.order_stats(principals["admin"], 7, OrderStatus.CANCELLED) == {"CANCELLED": 1}


def test_order_stats_staff_only(service, principals):
    with pytest.raises(Forbidden):
        service.order_stats(principals["customer"], user_id=7)


def test_orders_are_never_deleted_by_updates(service, make_order, principals, db):
    order = make_order()
    service.update_order(order.id, principals["admin"], OrderUpdate(status="RETURNED"))

    db.expire_all()
    assert db.get(OrderModel, order.id) is not None


def test_empty_status_means_no_status_change(service, make_order, principals, db):
    order = make_order(status="PROCESSING")

    result = service.update_order(
        order.id, principals["worker"], OrderUpdate.model_validate({"status": "", "notes": "x"})
    )

    assert result["status"] == "PROCESSING"
    assert result["notes"] == "x"
    assert [h.status for h in history_for(db, order.id)] == ["PENDING"]


def test_failed_history_write_rolls_back_order(service, make_order, principals, db, queue, monkeypatch):
    order = make_order(status="PENDING")

    def broken_append(**kwargs):
        raise RuntimeError("history table unavailable")

    monkeypatch.setattr(service.history, "append", broken_append)

    with pytest.raises(RuntimeError):
        service.update_order(
            order.id,
            principals["admin"],
            OrderUpdate(status="CANCELLED", price="99.99", title="Changed"),
        )

    db.expire_all()
    stored = db.get(OrderModel, order.id)
    assert stored.status == "PENDING"
    assert stored.price == Decimal("12.50")
    assert stored.title == "Sneakers"
    assert history_for(db, order.id) == []
    assert queue.pending() == []


def test_tracking_scan_marks_delivered_to_warehouse(service, make_order, principals, db, queue):
    order = make_order(status="PURCHASED", order_number="TR-5521")

    result = service.mark_delivered_by_tracking(principals["worker"], " TR-5521 ")

    assert result["status"] == OrderStatus.DELIVERED_TO_WAREHOUSE.value
    rows = history_for(db, order.id)
    assert [(r.status, r.user_id) for r in rows] == [("DELIVERED_TO_WAREHOUSE", 2)]
    assert rows[0].notes == "Order delivered to warehouse with tracking number TR-5521"
    assert [job.order_id for job in queue.pending()] == [order.id]


def test_tracking_scan_errors(service, make_order, principals, db):
    order = make_order(status="PURCHASED", order_number="TR-1")

    with pytest.raises(Forbidden):
        service.mark_delivered_by_tracking(principals["customer"], "TR-1")
    with pytest.raises(InvalidArgument):
        service.mark_delivered_by_tracking(principals["admin"], "  ")
    with pytest.raises(NotFound):
        service.mark_delivered_by_tracking(principals["admin"], "TR-404")

    db.refresh(order)
    assert order.status == "PURCHASED"
    assert history_for(db, order.id) == []
