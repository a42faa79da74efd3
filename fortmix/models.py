# Importing every model module registers all mappers on Base.metadata.
from fortmix.users.models import User
from fortmix.stock.products.models import Product
from fortmix.stock.movements.models import StockMovement
from fortmix.sales.models import Sale, SaleItem
from fortmix.audit.models import AuditLog

__all__ = ["User", "Product", "StockMovement", "Sale", "SaleItem", "AuditLog"]
