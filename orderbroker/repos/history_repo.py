# orderbroker/repos/history_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from orderbroker.data.models.order_status_history import OrderStatusHistoryModel


class StatusHistoryRepo:
    """
    Append-only log zmian zamowienia.
    Celowo brak metod update/delete.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(self, order_id: int, user_id: int, status: str, notes: str | None = None) -> OrderStatusHistoryModel:
        entry = OrderStatusHistoryModel(
            order_id=order_id,
            user_id=user_id,
            status=status,
            notes=notes,
        )
        # commit robi wywolujacy, w tej samej transakcji co zmiana zamowienia
        self.db.add(entry)
        return entry

    def list_for_order(self, order_id: int) -> List[OrderStatusHistoryModel]:
        stmt = (
            select(OrderStatusHistoryModel)
            .options(joinedload(OrderStatusHistoryModel.user))
            .where(OrderStatusHistoryModel.order_id == order_id)
            .order_by(OrderStatusHistoryModel.created_at.desc(), OrderStatusHistoryModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
