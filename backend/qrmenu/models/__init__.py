from .auth import User, UserSession, OneTimePassword, PasswordResetToken
from .menu import Category, MenuItem, MenuTemplate
from .tables import DiningTable
from .orders import Order, OrderItem
from .invoices import (
    InvoiceTemplate, TaxConfiguration, AdditionalCharge,
    Invoice, InvoiceTax, InvoiceAdditionalCharge,
)

__all__ = [
    'User', 'UserSession', 'OneTimePassword', 'PasswordResetToken',
    'Category', 'MenuItem', 'MenuTemplate',
    'DiningTable',
    'Order', 'OrderItem',
    'InvoiceTemplate', 'TaxConfiguration', 'AdditionalCharge',
    'Invoice', 'InvoiceTax', 'InvoiceAdditionalCharge',
]
