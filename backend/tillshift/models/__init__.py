from .catalog import Product
from .auth import Operator
from .shifts import Shift, ShiftSale, OpenShift, SHIFT_OPEN, SHIFT_CLOSED
from .sales import Sale, SaleLine, SalePayment, Invoice, InvoiceSequence
from .ledger import LedgerEvent

__all__ = [
    'Product',
    'Operator',
    'Shift', 'ShiftSale', 'OpenShift', 'SHIFT_OPEN', 'SHIFT_CLOSED',
    'Sale', 'SaleLine', 'SalePayment', 'Invoice', 'InvoiceSequence',
    'LedgerEvent',
]
