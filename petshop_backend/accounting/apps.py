# accounting/apps.py

"""
ACCOUNTING APP CONFIG

Double-entry ledger for the petshop:
- Chart of accounts (hierarchical, header/detail)
- Journal entries (Draft -> Posted -> Void)
- Ledger, trial balance, rollups, statements
- AP/AR aging over purchase orders and sales
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
