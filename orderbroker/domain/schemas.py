# orderbroker/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from orderbroker.domain.enums import OrderStatus, Role

# limity kolumn Numeric(10, 2) i Integer
MONEY_DIGITS = 10
MONEY_PLACES = 2
MAX_QUANTITY = 2**31 - 1


class CamelModel(BaseModel):
    """JSON w camelCase (shippingPrice, orderNumber), w pythonie snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class OrderCreate(CamelModel):
    """Schema dla tworzenia zamówienia. userId bierzemy pod uwage tylko od staffu."""

    user_id: int | None = Field(default=None, gt=0)
    title: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int | None = Field(default=None, gt=0, le=MAX_QUANTITY)
    shipping_price: Decimal | None = Field(default=None, ge=0, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    local_shipping_price: Decimal | None = Field(default=None, ge=0, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    product_link: str | None = None
    image_url: str | None = None
    notes: str | None = None


class OrderUpdate(CamelModel):
    """
    Patch zamówienia. Kazde pole opcjonalne, liczy sie tylko to co klient
    faktycznie wyslal (model_fields_set), brak pola != wyczyszczenie.
    """

    status: OrderStatus | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    shipping_price: Decimal | None = Field(default=None, ge=0, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    local_shipping_price: Decimal | None = Field(default=None, ge=0, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    order_number: str | None = None
    prepaid: bool | None = None
    quantity: int | None = Field(default=None, gt=0, le=MAX_QUANTITY)
    title: str | None = None
    size: str | None = None
    color: str | None = None
    notes: str | None = None
    product_link: str | None = None
    image_url: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def empty_status_is_absent(cls, value):
        # "" od klienta znaczy "nie zmieniam statusu"
        return value or None

    def changes(self) -> Dict[str, object]:
        return self.model_dump(exclude_unset=True)


class OwnerOut(CamelModel):
    name: str
    phone_number: str | None = None


class OrderOut(CamelModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: int
    title: str
    size: str
    color: str
    quantity: int
    price: Decimal
    shipping_price: Decimal
    local_shipping_price: Decimal
    status: OrderStatus
    order_number: str | None = None
    prepaid: bool
    product_link: str
    image_url: str
    notes: str
    created_at: datetime
    updated_at: datetime | None = None
    user: OwnerOut | None = None


class ActorOut(CamelModel):
    name: str


class StatusHistoryOut(CamelModel):
    id: int
    order_id: int
    user_id: int
    status: OrderStatus
    notes: str | None = None
    created_at: datetime
    user: ActorOut | None = None


class OrderDetailOut(OrderOut):
    status_history: List[StatusHistoryOut] = []


class UserCreate(CamelModel):
    """Schema dla tworzenia użytkownika."""

    name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=5, max_length=32)
    role: Role = Role.CUSTOMER


class UserRead(CamelModel):
    """Schema dla użytkownika (response)."""

    id: int
    name: str
    phone_number: str
    role: Role


class InvoiceGenerate(CamelModel):
    """Faktura z wybranych zamowien jednego klienta."""

    order_ids: List[int] = Field(..., min_length=1)
    due_date: datetime
    payment_method: str | None = None
    notes: str | None = None


class InvoiceOrderOut(CamelModel):
    id: int
    title: str
    size: str
    color: str
    quantity: int
    price: Decimal
    shipping_price: Decimal
    local_shipping_price: Decimal
    image_url: str


class InvoiceOut(CamelModel):
    """Schema dla faktury (response)."""

    id: int
    invoice_number: str
    user_id: int
    date: datetime
    due_date: datetime
    status: str
    total: Decimal
    payment_method: str | None = None
    notes: str | None = None
    created_at: datetime
    user: OwnerOut | None = None
    orders: List[InvoiceOrderOut] = []
