# accounting/management/commands/seed_petshop_chart.py

from django.core.management.base import BaseCommand
from django.db import transaction

from accounting.models.account import Account

H = True  # header
D = False  # detail

# (code, name, type, category, is_header, parent_code, normal_balance override)
PETSHOP_CHART = [
    # ASSETS
    ("1000", "Assets", Account.ASSET, "", H, None, None),
    ("1100", "Current Assets", Account.ASSET, "Current Asset", H, "1000", None),
    ("1110", "Cash on Hand", Account.ASSET, "Current Asset", D, "1100", None),
    ("1120", "Bank Account", Account.ASSET, "Current Asset", D, "1100", None),
    ("1130", "Accounts Receivable", Account.ASSET, "Current Asset", D, "1100", None),
    ("1140", "Inventory - Food & Supplies", Account.ASSET, "Current Asset", D, "1100", None),
    ("1150", "Inventory - Live Animals", Account.ASSET, "Current Asset", D, "1100", None),
    ("1500", "Fixed Assets", Account.ASSET, "Fixed Asset", H, "1000", None),
    ("1510", "Equipment & Fixtures", Account.ASSET, "Fixed Asset", D, "1500", None),
    ("1590", "Accumulated Depreciation", Account.ASSET, "Fixed Asset", D, "1500", Account.CREDIT),
    # LIABILITIES
    ("2000", "Liabilities", Account.LIABILITY, "", H, None, None),
    ("2100", "Current Liabilities", Account.LIABILITY, "Current Liability", H, "2000", None),
    ("2110", "Accounts Payable", Account.LIABILITY, "Current Liability", D, "2100", None),
    ("2120", "VAT Payable", Account.LIABILITY, "Current Liability", D, "2100", None),
    ("2130", "Customer Deposits", Account.LIABILITY, "Current Liability", D, "2100", None),
    # EQUITY
    ("3000", "Equity", Account.EQUITY, "", H, None, None),
    ("3100", "Owner Capital", Account.EQUITY, "Capital", D, "3000", None),
    ("3200", "Retained Earnings", Account.EQUITY, "Retained Earnings", D, "3000", None),
    ("3300", "Owner Drawings", Account.EQUITY, "Capital", D, "3000", Account.DEBIT),
    # REVENUE
    ("4000", "Revenue", Account.REVENUE, "", H, None, None),
    ("4100", "Product Sales", Account.REVENUE, "Operating Revenue", D, "4000", None),
    ("4200", "Grooming Services", Account.REVENUE, "Operating Revenue", D, "4000", None),
    ("4300", "Clinic Services", Account.REVENUE, "Operating Revenue", D, "4000", None),
    ("4400", "Pet Hotel", Account.REVENUE, "Operating Revenue", D, "4000", None),
    ("4900", "Sales Discounts", Account.REVENUE, "Contra Revenue", D, "4000", Account.DEBIT),
    # COST OF SALES
    ("5000", "Cost of Goods Sold", Account.EXPENSE, "Cost of Sales", H, None, None),
    ("5100", "COGS - Food & Supplies", Account.EXPENSE, "Cost of Sales", D, "5000", None),
    ("5200", "COGS - Live Animals", Account.EXPENSE, "Cost of Sales", D, "5000", None),
    # OPERATING EXPENSES
    ("6000", "Operating Expenses", Account.EXPENSE, "Operating Expense", H, None, None),
    ("6100", "Salaries & Wages", Account.EXPENSE, "Operating Expense", D, "6000", None),
    ("6200", "Rent", Account.EXPENSE, "Operating Expense", D, "6000", None),
    ("6300", "Utilities", Account.EXPENSE, "Operating Expense", D, "6000", None),
    ("6400", "Veterinary Supplies", Account.EXPENSE, "Operating Expense", D, "6000", None),
    ("6500", "Depreciation Expense", Account.EXPENSE, "Operating Expense", D, "6000", None),
    ("6900", "Miscellaneous Expense", Account.EXPENSE, "Operating Expense", D, "6000", None),
]


class Command(BaseCommand):
    help = "Seed the default hierarchical Chart of Accounts for a petshop (idempotent)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding Petshop Chart of Accounts...")

        by_code = {}
        created_count = 0
        updated_count = 0

        for code, name, account_type, category, is_header, parent_code, normal in PETSHOP_CHART:
            parent = by_code.get(parent_code) if parent_code else None

            acc, acc_created = Account.objects.get_or_create(
                code=code,
                deleted_at=None,
                defaults={
                    "name": name,
                    "account_type": account_type,
                    "category": category,
                    "is_header": is_header,
                    "parent": parent,
                    "normal_balance": normal or "",
                    "is_active": True,
                    "created_by": "seed_petshop_chart",
                },
            )
            by_code[code] = acc

            if acc_created:
                created_count += 1
                continue

            # Existing rows keep their postings; only fix descriptive drift.
            changed = False
            if acc.name != name:
                acc.name = name
                changed = True
            if acc.category != category:
                acc.category = category
                changed = True
            if not acc.is_active:
                acc.is_active = True
                changed = True

            if changed:
                acc.updated_by = "seed_petshop_chart"
                acc.save()
                updated_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Petshop chart ready: {created_count} created, {updated_count} updated, "
                f"{len(PETSHOP_CHART)} total"
            )
        )
