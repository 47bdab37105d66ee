# orderbroker/api/routers/orders.py
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from orderbroker.api.deps import get_current_user, get_notification_queue
from orderbroker.data.database import get_db
from orderbroker.domain.enums import OrderStatus
from orderbroker.domain.errors import OrderBrokerError
from orderbroker.domain.schemas import OrderCreate, OrderDetailOut, OrderOut, OrderUpdate
from orderbroker.services.notification_service import NotificationQueue
from orderbroker.services.order_service import OrderService
from orderbroker.services.token_service import Principal
from orderbroker.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    queue: NotificationQueue = Depends(get_notification_queue),
) -> OrderService:
    return OrderService(db, notifications=queue)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    caller: Principal = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamówienie (status PENDING) i pierwszy wpis historii.
    """
    try:
        return svc.create_order(caller, payload)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        logger.exception("Error creating order")
        raise HTTPException(status_code=500, detail="Failed to create order")


@router.get("/", response_model=List[OrderOut])
def list_orders(
    status: str | None = Query(None),
    caller: Principal = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.list_orders(caller, status)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/stats", response_model=Dict[str, int])
def order_stats(
    user_id: int = Query(..., alias="userId"),
    status: OrderStatus | None = Query(None),
    caller: Principal = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Liczba zamowien usera per status (tylko admin/worker).
    """
    try:
        return svc.order_stats(caller, user_id, status)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    caller: Principal = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Pobiera szczegóły zamówienia razem z historia statusow.
    """
    try:
        return svc.get_order(order_id, caller)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/{order_id}", response_model=OrderOut)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    caller: Principal = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.update_order(order_id, caller, payload)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        logger.exception(f"Error updating order {order_id}")
        raise HTTPException(status_code=500, detail="Failed to update order")
