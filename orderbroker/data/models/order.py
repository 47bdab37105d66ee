from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Boolean, Text
from sqlalchemy.orm import relationship

from orderbroker.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    size = Column(String, nullable=False, default="N/A")
    color = Column(String, nullable=False, default="N/A")
    quantity = Column(Integer, nullable=False, default=1)

    # kwoty w USD
    price = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_price = Column(Numeric(10, 2), nullable=False, default=0)
    local_shipping_price = Column(Numeric(10, 2), nullable=False, default=0)

    status = Column(String, nullable=False, default="PENDING", index=True)
    order_number = Column(String, nullable=True)
    prepaid = Column(Boolean, nullable=False, default=False)

    product_link = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_now)

    user = relationship("UserModel", back_populates="orders")
    status_history = relationship(
        "OrderStatusHistoryModel",
        back_populates="order",
        cascade="all, delete-orphan",
    )
