# orderbroker/repos/order_repo.py
from typing import Dict, Iterable, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from orderbroker.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # bez commita, serwis commituje razem z historia
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_with_owner(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(joinedload(OrderModel.user))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def get_by_order_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(joinedload(OrderModel.user))
            .where(OrderModel.order_number == order_number)
            .order_by(OrderModel.id)
            .limit(1)
        ).scalar_one_or_none()

    def get_orders(self, order_ids: Iterable[int]) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(joinedload(OrderModel.user))
                .where(OrderModel.id.in_(list(order_ids)))
                .order_by(OrderModel.id)
            ).scalars().all()
        )

    def list_orders(
        self,
        user_id: int | None = None,
        statuses: Iterable[str] | None = None,
    ) -> List[OrderModel]:
        stmt = select(OrderModel).options(joinedload(OrderModel.user))
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        if statuses is not None:
            stmt = stmt.where(OrderModel.status.in_(list(statuses)))
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def count_orders(self) -> int:
        return self.db.execute(select(func.count(OrderModel.id))).scalar_one()

    def count_by_status(self, user_id: int, statuses: Iterable[str]) -> Dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id))
            .where(
                OrderModel.user_id == user_id,
                OrderModel.status.in_(list(statuses)),
            )
            .group_by(OrderModel.status)
        ).all()
        return {status: count for status, count in rows}

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, order: OrderModel):
        self.db.refresh(order)
