"""Invoice enums."""

from enum import Enum


class InvoiceStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
