from .tenancy import Tenant, Store
from .auth import User, SessionToken
from .inventory import Product, InventoryMovement
from .sales import Sale, SaleItem, Payment

__all__ = [
    'Tenant', 'Store',
    'User', 'SessionToken',
    'Product', 'InventoryMovement',
    'Sale', 'SaleItem', 'Payment',
]
