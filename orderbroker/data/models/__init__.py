#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from orderbroker.data.models.user import UserModel
from orderbroker.data.models.order import OrderModel
from orderbroker.data.models.order_status_history import OrderStatusHistoryModel
from orderbroker.data.models.invoice import InvoiceModel

__all__ = ["UserModel", "OrderModel", "OrderStatusHistoryModel", "InvoiceModel"]
