# orderbroker/api/routers/invoices.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from orderbroker.api.deps import get_current_user
from orderbroker.data.database import get_db
from orderbroker.domain.errors import OrderBrokerError
from orderbroker.domain.schemas import InvoiceGenerate, InvoiceOut
from orderbroker.services.invoice_service import InvoiceService
from orderbroker.services.token_service import Principal
from orderbroker.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("/generate", response_model=InvoiceOut, status_code=201)
def generate_invoice(
    payload: InvoiceGenerate,
    caller: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Generuje fakture (status PENDING) z podanych zamowien.
    """
    try:
        return InvoiceService(db).generate_invoice(caller, payload)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        logger.exception("Failed to generate invoice")
        raise HTTPException(status_code=500, detail="Failed to generate invoice")


@router.get("/", response_model=List[InvoiceOut])
def list_invoices(
    caller: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return InvoiceService(db).list_invoices(caller)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{invoice_id}", response_model=InvoiceOut)
def get_invoice(
    invoice_id: int,
    caller: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return InvoiceService(db).get_invoice(caller, invoice_id)
    except OrderBrokerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
