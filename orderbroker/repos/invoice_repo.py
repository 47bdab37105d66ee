# orderbroker/repos/invoice_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload, selectinload

from orderbroker.data.models.invoice import InvoiceModel


class InvoiceRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_invoice(self, invoice: InvoiceModel) -> InvoiceModel:
        self.db.add(invoice)
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def get_invoice(self, invoice_id: int) -> InvoiceModel | None:
        return self.db.execute(
            select(InvoiceModel)
            .options(joinedload(InvoiceModel.user), selectinload(InvoiceModel.orders))
            .where(InvoiceModel.id == invoice_id)
        ).scalar_one_or_none()

    def list_invoices(self) -> List[InvoiceModel]:
        return list(
            self.db.execute(
                select(InvoiceModel)
                .options(joinedload(InvoiceModel.user), selectinload(InvoiceModel.orders))
                .order_by(InvoiceModel.created_at.desc(), InvoiceModel.id.desc())
            ).scalars().all()
        )

    def rollback(self):
        self.db.rollback()

    def number_taken(self, invoice_number: str) -> bool:
        return self.db.execute(
            select(InvoiceModel.id).where(InvoiceModel.invoice_number == invoice_number)
        ).first() is not None
