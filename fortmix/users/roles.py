from enum import Enum


class Role(str, Enum):
    OWNER = "Owner"
    MANAGER = "Manager"
    SALESPERSON = "Salesperson"
    STOCK_CLERK = "StockClerk"
