# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for sales app models (AR source documents).
"""

from .customer import Customer
from .sale import Sale
from .sale_payment import SalePayment

__all__ = [
    "Customer",
    "Sale",
    "SalePayment",
]
