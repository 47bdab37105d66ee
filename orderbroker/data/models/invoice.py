from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Table, Text
from sqlalchemy.orm import relationship

from orderbroker.data.database import Base

invoice_orders = Table(
    "invoice_orders",
    Base.metadata,
    Column("invoice_id", Integer, ForeignKey("invoices.id", ondelete="CASCADE"), primary_key=True),
    Column("order_id", Integer, ForeignKey("orders.id"), primary_key=True),
)


class InvoiceModel(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String, nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    date = Column(DateTime(timezone=True), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default="PENDING")  # PENDING, PAID, CANCELLED
    total = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    user = relationship("UserModel")
    orders = relationship("OrderModel", secondary=invoice_orders, order_by="OrderModel.id")
