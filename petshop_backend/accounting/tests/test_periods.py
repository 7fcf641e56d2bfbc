# accounting/tests/test_periods.py

from datetime import datetime, timezone as dt_timezone

from django.test import TestCase, override_settings

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.period import AccountingPeriod
from accounting.services import (
    financial_statement_service,
    journal_entry_service,
    ledger_service,
    period_service,
)
from accounting.services.exceptions import (
    AccountNotFound,
    JournalEntryCreationError,
    PeriodAlreadyExists,
    PeriodClosed,
    PeriodNotFound,
    PeriodStateError,
    YearAlreadyClosed,
    YearNotClosed,
)
from accounting.tests.factories import make_account, make_basic_chart, post_entry

MARCH_10 = datetime(2026, 3, 10, 9, 0, tzinfo=dt_timezone.utc)


class AccountingPeriodTests(TestCase):
    """
    GUARANTEES:
    - OPEN -> CLOSED -> LOCKED, reopen back to OPEN
    - Closed periods refuse postings, locked periods refuse voids too
    - Books close in order
    """

    def setUp(self):
        self.chart = make_basic_chart()
        self.march = period_service.create_period(year=2026, month=3, actor="manager")

    def _draft(self, when=MARCH_10):
        return journal_entry_service.create_draft(
            description="Kibble restock",
            lines=[
                {"account_id": self.chart["cash"].id, "debit_amount": 100},
                {"account_id": self.chart["sales"].id, "credit_amount": 100},
            ],
            journal_date=when,
        )

    # --------------------------------------------------
    # Creation
    # --------------------------------------------------

    def test_create_derives_bounds_and_name(self):
        self.assertEqual(self.march.name, "March 2026")
        self.assertEqual(self.march.status, AccountingPeriod.STATUS_OPEN)
        self.assertEqual(self.march.start_date, datetime(2026, 3, 1, tzinfo=dt_timezone.utc))
        self.assertEqual(self.march.end_date.date().day, 31)

    def test_duplicate_month_rejected(self):
        with self.assertRaises(PeriodAlreadyExists):
            period_service.create_period(year=2026, month=3)

    def test_unknown_period(self):
        with self.assertRaises(PeriodNotFound):
            period_service.close_period(987654)

    # --------------------------------------------------
    # Transitions
    # --------------------------------------------------

    def test_close_lock_reopen_cycle(self):
        closed = period_service.close_period(self.march.id, actor="manager")
        self.assertEqual(closed.status, AccountingPeriod.STATUS_CLOSED)
        self.assertEqual(closed.closed_by, "manager")

        locked = period_service.lock_period(self.march.id)
        self.assertEqual(locked.status, AccountingPeriod.STATUS_LOCKED)

        reopened = period_service.reopen_period(self.march.id)
        self.assertEqual(reopened.status, AccountingPeriod.STATUS_OPEN)
        self.assertIsNone(reopened.closed_at)

    def test_lock_requires_closed(self):
        with self.assertRaises(PeriodStateError):
            period_service.lock_period(self.march.id)

    def test_close_refused_while_drafts_inside(self):
        self._draft()
        with self.assertRaises(PeriodStateError) as ctx:
            period_service.close_period(self.march.id)
        self.assertEqual(ctx.exception.context["draft_count"], 1)

    def test_reopen_refused_when_later_period_closed(self):
        april = period_service.create_period(year=2026, month=4)
        period_service.close_period(self.march.id)
        period_service.close_period(april.id)

        with self.assertRaises(PeriodStateError):
            period_service.reopen_period(self.march.id)

    def test_list_periods_newest_first(self):
        period_service.create_period(year=2026, month=1)
        periods = period_service.list_periods(year=2026)
        self.assertEqual([p.month for p in periods], [3, 1])

    def test_current_period_covers_the_given_moment(self):
        self.assertEqual(period_service.get_current_period(MARCH_10), self.march)
        self.assertEqual(
            period_service.get_current_period(datetime(2026, 3, 31, 23, 59, tzinfo=dt_timezone.utc)),
            self.march,
        )
        self.assertIsNone(
            period_service.get_current_period(datetime(2026, 4, 1, tzinfo=dt_timezone.utc))
        )

    # --------------------------------------------------
    # Locks on the ledger timeline
    # --------------------------------------------------

    def test_closed_period_blocks_posting_but_allows_void(self):
        entry = post_entry(
            "Cash sale",
            [(self.chart["cash"], 100, 0), (self.chart["sales"], 0, 100)],
            when=MARCH_10,
        )
        period_service.close_period(self.march.id)

        journal_entry_service.void(entry.id, reason="Wrong till")

        with self.assertRaises(PeriodClosed):
            post_entry(
                "Late sale",
                [(self.chart["cash"], 100, 0), (self.chart["sales"], 0, 100)],
                when=MARCH_10,
            )

    def test_locked_period_blocks_void(self):
        entry = post_entry(
            "Cash sale",
            [(self.chart["cash"], 100, 0), (self.chart["sales"], 0, 100)],
            when=MARCH_10,
        )
        period_service.close_period(self.march.id)
        period_service.lock_period(self.march.id)

        with self.assertRaises(PeriodClosed):
            journal_entry_service.void(entry.id, reason="Wrong till")

    def test_dates_outside_any_period_are_open(self):
        period_service.close_period(self.march.id)
        entry = post_entry(
            "April sale",
            [(self.chart["cash"], 100, 0), (self.chart["sales"], 0, 100)],
            when=datetime(2026, 4, 2, tzinfo=dt_timezone.utc),
        )
        self.assertTrue(entry.is_posted)

    @override_settings(ACCOUNTING_PERIOD_LOCKS_ENABLED=False)
    def test_locks_can_be_disabled(self):
        period_service.close_period(self.march.id)
        entry = post_entry(
            "Backdated sale",
            [(self.chart["cash"], 100, 0), (self.chart["sales"], 0, 100)],
            when=MARCH_10,
        )
        self.assertTrue(entry.is_posted)

    def test_model_delete_blocked(self):
        from django.core.exceptions import ValidationError

        with self.assertRaises(ValidationError):
            self.march.delete()


JUNE_15_2025 = datetime(2025, 6, 15, 10, 0, tzinfo=dt_timezone.utc)
JULY_1_2025 = datetime(2025, 7, 1, 10, 0, tzinfo=dt_timezone.utc)
DEC_31_2025 = datetime(2025, 12, 31, 12, 0, tzinfo=dt_timezone.utc)
JAN_5_2026 = datetime(2026, 1, 5, 10, 0, tzinfo=dt_timezone.utc)


class YearEndCloseTests(TestCase):
    """
    GUARANTEES:
    - The year's revenue and expense move into retained earnings in one entry
    - December must be CLOSED (not open, not locked) and a year closes once
    - The closing entry is the only posting a closed December accepts
    - Income statements still report the closed year's activity
    """

    def setUp(self):
        self.chart = make_basic_chart()
        self.retained = make_account(
            "3200", "Retained Earnings", Account.EQUITY, parent=self.chart["equity"]
        )
        self.december = period_service.create_period(year=2025, month=12)

    def _trade_2025(self):
        post_entry(
            "Grooming and kibble sales",
            [(self.chart["cash"], 50000, 0), (self.chart["sales"], 0, 50000)],
            when=JUNE_15_2025,
        )
        post_entry(
            "Shop rent",
            [(self.chart["rent"], 20000, 0), (self.chart["cash"], 0, 20000)],
            when=JULY_1_2025,
        )
        post_entry(
            "New year sale",
            [(self.chart["cash"], 7000, 0), (self.chart["sales"], 0, 7000)],
            when=JAN_5_2026,
        )

    def _close_december(self):
        period_service.close_period(self.december.id, actor="manager")

    def _lines(self, entry_id):
        entry = journal_entry_service.get_entry(entry_id)
        return sorted(
            (line.account.code, line.debit_amount, line.credit_amount) for line in entry.lines.all()
        )

    def test_profit_moves_into_retained_earnings(self):
        self._trade_2025()
        self._close_december()

        result = period_service.year_end_close(2025, actor="manager")

        self.assertEqual(result["net_income"], 30000)
        self.assertEqual(result["total_revenue"], 50000)
        self.assertEqual(result["total_expenses"], 20000)

        entry = journal_entry_service.get_entry(result["journal_entry_id"])
        self.assertEqual(entry.journal_number, result["journal_number"])
        self.assertEqual(entry.source_type, JournalEntry.SOURCE_YEAR_END_CLOSE)
        self.assertEqual(entry.source_id, "2025")
        self.assertTrue(entry.is_posted)
        self.assertEqual(entry.journal_date.date(), DEC_31_2025.date())
        self.assertEqual(
            self._lines(entry.id),
            [("3200", 0, 30000), ("4100", 50000, 0), ("6200", 0, 20000)],
        )

        year_end = DEC_31_2025.date()
        self.assertEqual(ledger_service.get_account_balance(self.chart["sales"], as_of=year_end), 0)
        self.assertEqual(ledger_service.get_account_balance(self.chart["rent"], as_of=year_end), 0)
        self.assertEqual(ledger_service.get_account_balance(self.retained, as_of=year_end), 30000)
        # The following year is untouched.
        self.assertEqual(ledger_service.get_account_balance(self.chart["sales"]), 7000)

    def test_balance_sheet_and_income_statement_after_close(self):
        self._trade_2025()
        self._close_december()
        period_service.year_end_close(2025)

        sheet = financial_statement_service.generate_balance_sheet(as_of=DEC_31_2025.date())
        self.assertEqual(
            [(row["name"], row["amount"]) for row in sheet["equity"]],
            [("Retained Earnings", 30000)],
        )
        self.assertTrue(sheet["totals"]["balanced"])

        income = financial_statement_service.generate_income_statement(
            start=datetime(2025, 1, 1, tzinfo=dt_timezone.utc), end=DEC_31_2025.date()
        )
        self.assertEqual(income["totals"]["net_income"], 30000)

        cash_flow = financial_statement_service.generate_cash_flow_statement(
            start=datetime(2025, 1, 1, tzinfo=dt_timezone.utc), end=DEC_31_2025.date()
        )
        self.assertEqual(cash_flow["operating_activities"]["net_income"], 30000)
        self.assertEqual(cash_flow["financing_activities"]["items"], [])
        self.assertTrue(cash_flow["totals"]["reconciled"])

    def test_loss_debits_retained_earnings(self):
        post_entry(
            "Shop rent",
            [(self.chart["rent"], 20000, 0), (self.chart["cash"], 0, 20000)],
            when=JULY_1_2025,
        )
        self._close_december()

        result = period_service.year_end_close(2025)

        self.assertEqual(result["net_income"], -20000)
        self.assertEqual(self._lines(result["journal_entry_id"]), [("3200", 20000, 0), ("6200", 0, 20000)])

    def test_nothing_to_close(self):
        self._close_december()

        result = period_service.year_end_close(2025)

        self.assertEqual(result["net_income"], 0)
        self.assertIsNone(result["journal_entry_id"])
        self.assertFalse(
            JournalEntry.objects.filter(source_type=JournalEntry.SOURCE_YEAR_END_CLOSE).exists()
        )

    def test_year_closes_once(self):
        self._trade_2025()
        self._close_december()
        period_service.year_end_close(2025)

        with self.assertRaises(YearAlreadyClosed):
            period_service.year_end_close(2025)

    def test_voided_close_can_be_redone(self):
        self._trade_2025()
        self._close_december()
        first = period_service.year_end_close(2025)
        journal_entry_service.void(first["journal_entry_id"], reason="Recount inventory first")

        second = period_service.year_end_close(2025)

        self.assertNotEqual(second["journal_entry_id"], first["journal_entry_id"])
        self.assertEqual(second["net_income"], 30000)
        self.assertEqual(
            ledger_service.get_account_balance(self.retained, as_of=DEC_31_2025.date()), 30000
        )

    def test_december_must_be_closed(self):
        self._trade_2025()

        with self.assertRaises(YearNotClosed):
            period_service.year_end_close(2025)

        self._close_december()
        period_service.lock_period(self.december.id)
        with self.assertRaises(YearNotClosed):
            period_service.year_end_close(2025)

    def test_missing_december_period(self):
        with self.assertRaises(YearNotClosed):
            period_service.year_end_close(2024)

    @override_settings(ACCOUNTING_RETAINED_EARNINGS_CODE="3999")
    def test_missing_retained_earnings_account(self):
        self._trade_2025()
        self._close_december()

        with self.assertRaises(AccountNotFound):
            period_service.year_end_close(2025)

    def test_closed_december_still_refuses_ordinary_postings(self):
        self._close_december()

        with self.assertRaises(PeriodClosed):
            post_entry(
                "Late sale",
                [(self.chart["cash"], 100, 0), (self.chart["sales"], 0, 100)],
                when=DEC_31_2025,
            )

    def test_callers_cannot_draft_closing_entries(self):
        with self.assertRaises(JournalEntryCreationError):
            journal_entry_service.create_draft(
                description="Hand-made close",
                lines=[
                    {"account_id": self.chart["sales"].id, "debit_amount": 100},
                    {"account_id": self.retained.id, "credit_amount": 100},
                ],
                journal_date=DEC_31_2025,
                source_type=JournalEntry.SOURCE_YEAR_END_CLOSE,
            )
