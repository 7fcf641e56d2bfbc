# accounting/tests/test_financial_statements.py

from django.test import TestCase

from accounting.models.account import Account
from accounting.services.exceptions import LedgerIntegrityError
from accounting.services.financial_statement_service import (
    generate_balance_sheet,
    generate_cash_flow_statement,
    generate_income_statement,
)
from accounting.tests.factories import (
    day,
    force_posted_entry,
    make_account,
    make_basic_chart,
    post_entry,
)
from branches.models import Branch


class FinancialStatementTests(TestCase):
    """
    GUARANTEES:
    - Assets = Liabilities + Equity (current earnings included)
    - Contra accounts reduce their section
    - Income statement only counts movements inside the window
    - Cash flow sections add up to the change in cash balances
    """

    def setUp(self):
        self.chart = make_basic_chart()

        post_entry(
            "Owner investment",
            [(self.chart["bank"], 500000, 0), (self.chart["capital"], 0, 500000)],
            when=day(1),
        )
        post_entry(
            "Cash sales",
            [(self.chart["cash"], 120000, 0), (self.chart["sales"], 0, 120000)],
            when=day(2),
        )
        post_entry(
            "Rent",
            [(self.chart["rent"], 40000, 0), (self.chart["bank"], 0, 40000)],
            when=day(3),
        )
        post_entry(
            "Rent top-up on account",
            [(self.chart["rent"], 10000, 0), (self.chart["payable"], 0, 10000)],
            when=day(4),
        )

    # --------------------------------------------------
    # Balance sheet
    # --------------------------------------------------

    def test_balance_sheet_balances(self):
        sheet = generate_balance_sheet(as_of=day(10))

        self.assertEqual([r["code"] for r in sheet["assets"]], ["1110", "1120"])
        self.assertEqual(sheet["totals"]["assets"], 580000)
        self.assertEqual(sheet["totals"]["liabilities"], 10000)
        self.assertEqual(sheet["totals"]["equity"], 570000)
        self.assertEqual(sheet["totals"]["liabilities_plus_equity"], 580000)
        self.assertTrue(sheet["totals"]["balanced"])

        earnings = sheet["equity"][-1]
        self.assertIsNone(earnings["account_id"])
        self.assertEqual(earnings["name"], "Current Period Earnings")
        self.assertEqual(earnings["amount"], 70000)

    def test_contra_asset_reduces_assets(self):
        depreciation = make_account("6500", "Depreciation Expense", Account.EXPENSE, parent=self.chart["expenses"])
        accumulated = make_account(
            "1590",
            "Accumulated Depreciation",
            Account.ASSET,
            parent=self.chart["assets"],
            normal_balance=Account.CREDIT,
        )
        post_entry("Depreciation", [(depreciation, 5000, 0), (accumulated, 0, 5000)], when=day(5))

        sheet = generate_balance_sheet(as_of=day(10))

        contra = next(r for r in sheet["assets"] if r["code"] == "1590")
        self.assertEqual(contra["amount"], -5000)
        self.assertEqual(sheet["totals"]["assets"], 575000)
        self.assertTrue(sheet["totals"]["balanced"])

    def test_broken_journal_raises_without_branch(self):
        force_posted_entry(
            "JE-20260306-900", "Half an entry", [(self.chart["cash"], 100, 0)], when=day(5)
        )

        with self.assertRaises(LedgerIntegrityError):
            generate_balance_sheet(as_of=day(10))

    def test_branch_sheet_reports_imbalance_instead_of_raising(self):
        north = Branch.objects.create(name="North")
        post_entry(
            "Split sale",
            [(self.chart["cash"], 900, 0), (self.chart["sales"], 0, 900)],
            when=day(5),
            line_branches=[north, Branch.objects.create(name="South")],
        )

        sheet = generate_balance_sheet(as_of=day(10), branch=north)
        self.assertFalse(sheet["totals"]["balanced"])
        self.assertEqual(sheet["branch_id"], str(north.pk))

    # --------------------------------------------------
    # Income statement
    # --------------------------------------------------

    def test_income_statement_window(self):
        report = generate_income_statement(start=day(2), end=day(10))

        self.assertEqual(report["totals"], {"revenue": 120000, "expenses": 50000, "net_income": 70000})
        self.assertEqual([r["code"] for r in report["revenue"]], ["4100"])
        self.assertEqual([r["code"] for r in report["expenses"]], ["6200"])

    def test_income_statement_excludes_earlier_movements(self):
        report = generate_income_statement(start=day(3), end=day(10))

        self.assertEqual(report["revenue"], [])
        self.assertEqual(report["totals"]["net_income"], -50000)

    def test_income_statement_requires_window(self):
        with self.assertRaises(ValueError):
            generate_income_statement(start=None, end=day(10))

    # --------------------------------------------------
    # Cash flow
    # --------------------------------------------------

    def test_cash_flow_reconciles_to_cash_accounts(self):
        report = generate_cash_flow_statement(start=day(1), end=day(10))

        operating = report["operating_activities"]
        self.assertEqual(operating["net_income"], 70000)
        self.assertEqual([(r["code"], r["amount"]) for r in operating["adjustments"]], [("2110", 10000)])
        self.assertEqual(operating["total"], 80000)
        self.assertEqual(report["investing_activities"], {"items": [], "total": 0})
        self.assertEqual(
            [(r["code"], r["amount"]) for r in report["financing_activities"]["items"]],
            [("3100", 500000)],
        )
        self.assertEqual(
            report["totals"],
            {
                "net_cash_change": 580000,
                "cash_beginning": 0,
                "cash_ending": 580000,
                "reconciled": True,
            },
        )

    def test_cash_flow_splits_capex_from_depreciation(self):
        equipment = make_account(
            "1510", "Grooming Tables", Account.ASSET, parent=self.chart["assets"], category="Fixed Asset"
        )
        accumulated = make_account(
            "1590",
            "Accumulated Depreciation",
            Account.ASSET,
            parent=self.chart["assets"],
            category="Fixed Asset",
            normal_balance=Account.CREDIT,
        )
        depreciation = make_account("6500", "Depreciation Expense", Account.EXPENSE, parent=self.chart["expenses"])
        post_entry("Grooming tables", [(equipment, 90000, 0), (self.chart["bank"], 0, 90000)], when=day(5))
        post_entry("Depreciation", [(depreciation, 3000, 0), (accumulated, 0, 3000)], when=day(6))

        report = generate_cash_flow_statement(start=day(5), end=day(10))

        operating = report["operating_activities"]
        self.assertEqual(operating["net_income"], -3000)
        self.assertEqual([(r["code"], r["amount"]) for r in operating["adjustments"]], [("1590", 3000)])
        self.assertEqual(operating["total"], 0)
        self.assertEqual(
            [(r["code"], r["amount"]) for r in report["investing_activities"]["items"]],
            [("1510", -90000)],
        )
        self.assertEqual(report["totals"]["cash_beginning"], 580000)
        self.assertEqual(report["totals"]["cash_ending"], 490000)
        self.assertEqual(report["totals"]["net_cash_change"], -90000)
        self.assertTrue(report["totals"]["reconciled"])

    def test_cash_flow_opening_cash_comes_from_before_the_window(self):
        report = generate_cash_flow_statement(start=day(2), end=day(10))

        self.assertEqual(report["financing_activities"]["total"], 0)
        self.assertEqual(report["totals"]["cash_beginning"], 500000)
        self.assertEqual(report["totals"]["net_cash_change"], 80000)
        self.assertTrue(report["totals"]["reconciled"])

    def test_cash_flow_requires_window(self):
        with self.assertRaises(ValueError):
            generate_cash_flow_statement(start=day(1), end=None)
