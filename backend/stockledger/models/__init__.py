from .catalog import Location, Product, ProductLocationStock
from .ledger import LogEntry
from .orders import Order, OrderItem

__all__ = [
    'Location', 'Product', 'ProductLocationStock',
    'LogEntry',
    'Order', 'OrderItem',
]
