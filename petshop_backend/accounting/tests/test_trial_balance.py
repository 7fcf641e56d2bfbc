# accounting/tests/test_trial_balance.py

from django.test import TestCase

from accounting.models.account import Account
from accounting.services.exceptions import LedgerIntegrityError
from accounting.services.trial_balance_service import TrialBalanceService
from accounting.tests.factories import (
    day,
    force_posted_entry,
    make_account,
    make_basic_chart,
    post_entry,
)


class TrialBalanceTests(TestCase):
    """
    GUARANTEES:
    - Total debits == total credits for a healthy ledger
    - Only non-zero, active detail accounts are listed, code-ordered
    - Abnormal balances land in the opposite column as absolute values
    - A posted journal that does not reconcile is an integrity error
    """

    def setUp(self):
        self.chart = make_basic_chart()
        self.service = TrialBalanceService()

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

    def test_columns_balance(self):
        report = self.service.generate(as_of=day(10))

        self.assertEqual(
            [row["account_code"] for row in report["accounts"]],
            ["1110", "1120", "3100", "4100", "6200"],
        )
        self.assertEqual(report["totals"], {"debit": 620000, "credit": 620000, "balanced": True})

        by_code = {row["account_code"]: row for row in report["accounts"]}
        self.assertEqual((by_code["1120"]["debit"], by_code["1120"]["credit"]), (460000, 0))
        self.assertEqual((by_code["3100"]["debit"], by_code["3100"]["credit"]), (0, 500000))

    def test_as_of_excludes_later_entries(self):
        report = self.service.generate(as_of=day(1))

        self.assertEqual([row["account_code"] for row in report["accounts"]], ["1120", "3100"])
        self.assertEqual(report["totals"]["debit"], 500000)

    def test_abnormal_balance_goes_to_opposite_column(self):
        post_entry(
            "Overdrawn till",
            [(self.chart["rent"], 200000, 0), (self.chart["cash"], 0, 200000)],
            when=day(4),
        )
        report = self.service.generate(as_of=day(10))

        cash = next(r for r in report["accounts"] if r["account_code"] == "1110")
        self.assertEqual(cash["balance"], -80000)
        self.assertEqual((cash["debit"], cash["credit"]), (0, 80000))
        self.assertTrue(cash["abnormal"])
        self.assertTrue(report["totals"]["balanced"])

    def test_contra_account_sits_in_credit_column(self):
        depreciation = make_account("6500", "Depreciation Expense", Account.EXPENSE, parent=self.chart["expenses"])
        accumulated = make_account(
            "1590",
            "Accumulated Depreciation",
            Account.ASSET,
            parent=self.chart["assets"],
            normal_balance=Account.CREDIT,
        )
        post_entry("Depreciation", [(depreciation, 5000, 0), (accumulated, 0, 5000)], when=day(4))

        report = self.service.generate(as_of=day(10))
        row = next(r for r in report["accounts"] if r["account_code"] == "1590")
        self.assertEqual((row["debit"], row["credit"], row["abnormal"]), (0, 5000, False))
        self.assertTrue(report["totals"]["balanced"])

    def test_unreconciled_journal_raises_integrity_error(self):
        force_posted_entry(
            "JE-20260305-999",
            "Imported without its credit leg",
            [(self.chart["cash"], 700, 0)],
            when=day(4),
        )

        with self.assertRaises(LedgerIntegrityError) as ctx:
            self.service.generate(as_of=day(10))

        self.assertEqual(ctx.exception.context["journal_debit"], 660700)
        self.assertEqual(ctx.exception.context["journal_credit"], 660000)
        self.assertIn("JE-20260305-999", ctx.exception.context["unbalanced_entries"])
