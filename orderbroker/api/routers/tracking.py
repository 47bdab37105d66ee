# orderbroker/api/routers/tracking.py
from fastapi import APIRouter, Depends, HTTPException

from orderbroker.api.deps import get_current_user
from orderbroker.api.routers.orders import get_service
from orderbroker.domain.errors import OrderBrokerError
from orderbroker.domain.schemas import OrderOut
from orderbroker.services.order_service import OrderService
from orderbroker.services.token_service import Principal
from orderbroker.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.put("/{order_number}", response_model=OrderOut)
def scan_into_warehouse(
    order_number: str,
    caller: Principal = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Skaner w magazynie: numer z paczki -> DELIVERED_TO_WAREHOUSE.
    """
    try:
        return svc.mark_delivered_by_tracking(caller, order_number)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        logger.exception(f"Error updating tracking status for {order_number}")
        raise HTTPException(status_code=500, detail="Failed to update tracking status")
