# accounting/tests/test_journal_integrity.py

from __future__ import annotations

from unittest import mock

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.services import account_registry, journal_entry_service, ledger_service
from accounting.services.exceptions import (
    AccountInactive,
    AccountIsHeader,
    AlreadyPosted,
    EntryNotDraft,
    EntryVoided,
    JournalEntryCreationError,
    JournalEntryNotFound,
    MalformedLine,
    NotPosted,
    Unbalanced,
    VoidReasonRequired,
)
from accounting.tests.factories import DAY_0, day, make_basic_chart


class JournalEntryServiceTests(TestCase):
    """
    Journal lifecycle: Draft -> Posted -> Void.

    GUARANTEES:
    - Only balanced entries post
    - Every line carries exactly one non-zero side
    - Posted entries are never edited or deleted
    - Voided entries stay retrievable for audit
    """

    def setUp(self):
        self.chart = make_basic_chart()
        self.cash = self.chart["cash"]
        self.sales = self.chart["sales"]

    def _lines(self, debit=10000, credit=10000):
        return [
            {"account_id": self.cash.id, "debit_amount": debit},
            {"account_id": self.sales.id, "credit_amount": credit},
        ]

    def _draft(self, **kwargs):
        kwargs.setdefault("description", "Dog food sale")
        kwargs.setdefault("lines", self._lines())
        kwargs.setdefault("journal_date", DAY_0)
        return journal_entry_service.create_draft(actor="cashier", **kwargs)

    # --------------------------------------------------
    # Drafting
    # --------------------------------------------------

    def test_create_draft_stores_lines_in_order(self):
        entry = self._draft()

        self.assertEqual(entry.status, JournalEntry.STATUS_DRAFT)
        self.assertEqual(entry.journal_number, "JE-20260301-001")
        lines = list(entry.lines.order_by("sort_order"))
        self.assertEqual([l.account_id for l in lines], [self.cash.id, self.sales.id])
        self.assertEqual(journal_entry_service.entry_totals(entry), (10000, 10000))

    def test_journal_numbers_increment_per_day(self):
        first = self._draft()
        second = self._draft()
        other_day = self._draft(journal_date=day(1))

        self.assertEqual(first.journal_number, "JE-20260301-001")
        self.assertEqual(second.journal_number, "JE-20260301-002")
        self.assertEqual(other_day.journal_number, "JE-20260302-001")

    def test_number_collision_retries_with_fresh_number(self):
        taken = self._draft()

        with mock.patch(
            "accounting.services.journal_entry_service.next_journal_number",
            side_effect=[taken.journal_number, "JE-20260301-002"],
        ):
            entry = self._draft()

        self.assertEqual(entry.journal_number, "JE-20260301-002")
        self.assertEqual(JournalEntry.objects.count(), 2)

    def test_number_allocation_gives_up_after_repeated_collisions(self):
        taken = self._draft()

        with mock.patch(
            "accounting.services.journal_entry_service.next_journal_number",
            return_value=taken.journal_number,
        ):
            with self.assertRaises(JournalEntryCreationError):
                self._draft()

        self.assertEqual(JournalEntry.objects.count(), 1)

    def test_explicit_number_is_not_reallocated(self):
        taken = self._draft()
        with self.assertRaises(JournalEntryCreationError):
            self._draft(journal_number=taken.journal_number)

    def test_draft_may_be_unbalanced(self):
        entry = self._draft(lines=self._lines(credit=9000))
        self.assertEqual(journal_entry_service.entry_totals(entry), (10000, 9000))

    def test_lines_resolve_account_code(self):
        entry = self._draft(
            lines=[
                {"account_code": "1110", "debit_amount": 500},
                {"account_code": "4100", "credit_amount": 500},
            ]
        )
        self.assertEqual(entry.lines.count(), 2)

    def test_empty_entry_rejected(self):
        with self.assertRaises(JournalEntryCreationError):
            self._draft(lines=[])

    def test_line_with_both_sides_rejected(self):
        with self.assertRaises(MalformedLine):
            self._draft(
                lines=[{"account_id": self.cash.id, "debit_amount": 100, "credit_amount": 100}]
            )

    def test_line_with_neither_side_rejected(self):
        with self.assertRaises(MalformedLine):
            self._draft(lines=[{"account_id": self.cash.id}])

    def test_negative_amount_rejected(self):
        with self.assertRaises(MalformedLine):
            self._draft(lines=[{"account_id": self.cash.id, "debit_amount": -5}])

    def test_garbled_amount_strings_rejected(self):
        for raw in ("--5", "12a", "1.5", "  ", "+-3"):
            with self.subTest(raw=raw):
                with self.assertRaises(MalformedLine):
                    self._draft(lines=[{"account_id": self.cash.id, "debit_amount": raw}])

    def test_numeric_strings_accepted(self):
        entry = self._draft(
            lines=[
                {"account_id": self.cash.id, "debit_amount": " 2500 "},
                {"account_id": self.sales.id, "credit_amount": "2500"},
            ]
        )
        self.assertEqual(journal_entry_service.entry_totals(entry), (2500, 2500))

    def test_fractional_amount_rejected(self):
        with self.assertRaises(MalformedLine):
            self._draft(lines=[{"account_id": self.cash.id, "debit_amount": 10.5}])

    def test_header_account_rejected(self):
        with self.assertRaises(AccountIsHeader):
            self._draft(
                lines=[
                    {"account_id": self.chart["assets"].id, "debit_amount": 100},
                    {"account_id": self.sales.id, "credit_amount": 100},
                ]
            )

    def test_failed_draft_leaves_nothing_behind(self):
        with self.assertRaises(AccountIsHeader):
            self._draft(
                lines=[
                    {"account_id": self.cash.id, "debit_amount": 100},
                    {"account_id": self.chart["revenue"].id, "credit_amount": 100},
                ]
            )
        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(JournalEntryLine.objects.count(), 0)

    def test_model_rejects_two_sided_line(self):
        entry = self._draft()
        with self.assertRaises(ValidationError):
            JournalEntryLine.objects.create(
                entry=entry, account=self.cash, debit_amount=1, credit_amount=1
            )

    # --------------------------------------------------
    # Posting
    # --------------------------------------------------

    def test_post_balanced_entry(self):
        entry = journal_entry_service.post(self._draft().id, actor="manager")

        self.assertEqual(entry.status, JournalEntry.STATUS_POSTED)
        self.assertEqual(entry.posted_by, "manager")
        self.assertIsNotNone(entry.posted_at)

    def test_post_unbalanced_raises(self):
        entry = self._draft(lines=self._lines(credit=9000))

        with self.assertRaises(Unbalanced) as ctx:
            journal_entry_service.post(entry.id)

        self.assertEqual(ctx.exception.debit_total, 10000)
        self.assertEqual(ctx.exception.credit_total, 9000)
        entry.refresh_from_db()
        self.assertEqual(entry.status, JournalEntry.STATUS_DRAFT)

    def test_post_twice_raises(self):
        entry = journal_entry_service.post(self._draft().id)
        with self.assertRaises(AlreadyPosted):
            journal_entry_service.post(entry.id)

    def test_post_rechecks_account_status(self):
        entry = self._draft()
        account_registry.update_account(self.sales.id, is_active=False)

        with self.assertRaises(AccountInactive):
            journal_entry_service.post(entry.id)

    def test_create_and_post_is_atomic(self):
        with self.assertRaises(Unbalanced):
            journal_entry_service.create_and_post(
                description="Broken", lines=self._lines(credit=1), journal_date=DAY_0
            )
        self.assertFalse(JournalEntry.objects.exists())

    # --------------------------------------------------
    # Draft editing
    # --------------------------------------------------

    def test_add_and_remove_lines_on_draft(self):
        entry = self._draft(lines=[{"account_id": self.cash.id, "debit_amount": 2500}])

        line = journal_entry_service.add_line(
            entry.id, line={"account_id": self.sales.id, "credit_amount": 2500}
        )
        self.assertEqual(line.sort_order, 2)
        self.assertEqual(journal_entry_service.entry_totals(entry), (2500, 2500))

        journal_entry_service.remove_line(entry.id, line.id)
        self.assertEqual(journal_entry_service.entry_totals(entry), (2500, 0))

    def test_posted_entry_cannot_be_edited(self):
        entry = journal_entry_service.post(self._draft().id)

        with self.assertRaises(EntryNotDraft):
            journal_entry_service.add_line(
                entry.id, line={"account_id": self.cash.id, "debit_amount": 1}
            )
        with self.assertRaises(EntryNotDraft):
            journal_entry_service.remove_line(entry.id, entry.lines.first().id)
        with self.assertRaises(EntryNotDraft):
            journal_entry_service.delete_draft(entry.id)

    def test_delete_draft(self):
        entry = self._draft()
        journal_entry_service.delete_draft(entry.id)

        with self.assertRaises(JournalEntryNotFound):
            journal_entry_service.get_entry(entry.id)
        self.assertFalse(JournalEntryLine.objects.exists())

    def test_posted_entry_model_delete_blocked(self):
        entry = journal_entry_service.post(self._draft().id)
        with self.assertRaises(ValidationError):
            entry.delete()

    def test_posted_lines_are_immutable(self):
        entry = journal_entry_service.post(self._draft().id)
        cash_line = entry.lines.get(account=self.cash)
        sales_line = entry.lines.get(account=self.sales)

        cash_line.debit_amount = 999999
        with self.assertRaises(ValidationError):
            cash_line.save()
        with self.assertRaises(ValidationError):
            sales_line.delete()
        with self.assertRaises(ValidationError):
            JournalEntryLine.objects.create(entry=entry, account=self.cash, debit_amount=1)

        self.assertEqual(journal_entry_service.entry_totals(entry), (10000, 10000))
        self.assertEqual(ledger_service.get_account_balance(self.cash), 10000)

    def test_posted_entry_content_is_frozen(self):
        entry = journal_entry_service.post(self._draft().id)

        entry.description = "Rewritten history"
        with self.assertRaises(ValidationError):
            entry.save()

        entry.refresh_from_db()
        entry.journal_date = day(9)
        with self.assertRaises(ValidationError):
            entry.save()

        entry.refresh_from_db()
        entry.status = JournalEntry.STATUS_DRAFT
        with self.assertRaises(ValidationError):
            entry.save()

        entry.refresh_from_db()
        self.assertEqual(entry.description, "Dog food sale")
        self.assertEqual(entry.status, JournalEntry.STATUS_POSTED)

    def test_voided_entry_is_frozen(self):
        entry = journal_entry_service.post(self._draft().id)
        voided = journal_entry_service.void(entry.id, reason="Duplicate receipt")

        voided.void_reason = "Something else"
        with self.assertRaises(ValidationError):
            voided.save()

        voided.refresh_from_db()
        voided.status = JournalEntry.STATUS_POSTED
        with self.assertRaises(ValidationError):
            voided.save()

        line = voided.lines.first()
        with self.assertRaises(ValidationError):
            line.delete()

    def test_draft_lines_stay_editable_at_model_level(self):
        entry = self._draft()
        line = entry.lines.get(account=self.cash)

        line.debit_amount = 12000
        line.save()
        entry.description = "Dog food sale (corrected)"
        entry.save()

        self.assertEqual(journal_entry_service.entry_totals(entry), (12000, 10000))

    # --------------------------------------------------
    # Voiding
    # --------------------------------------------------

    def test_void_posted_entry(self):
        entry = journal_entry_service.post(self._draft().id)
        voided = journal_entry_service.void(entry.id, reason="Duplicate receipt", actor="manager")

        self.assertEqual(voided.status, JournalEntry.STATUS_VOID)
        self.assertEqual(voided.void_reason, "Duplicate receipt")

        fetched = journal_entry_service.get_entry(entry.id)
        self.assertEqual(fetched.status, JournalEntry.STATUS_VOID)
        self.assertEqual(
            [(l.account_id, l.debit_amount, l.credit_amount) for l in fetched.lines.all()],
            [(self.cash.id, 10000, 0), (self.sales.id, 0, 10000)],
        )
        self.assertEqual(ledger_service.get_account_balance(self.cash), 0)

    def test_void_requires_reason(self):
        entry = journal_entry_service.post(self._draft().id)
        with self.assertRaises(VoidReasonRequired):
            journal_entry_service.void(entry.id, reason="   ")

    def test_void_draft_raises(self):
        with self.assertRaises(NotPosted):
            journal_entry_service.void(self._draft().id, reason="typo")

    def test_voided_entry_cannot_be_posted_again(self):
        entry = journal_entry_service.post(self._draft().id)
        journal_entry_service.void(entry.id, reason="typo")

        with self.assertRaises(EntryVoided):
            journal_entry_service.post(entry.id)
        with self.assertRaises(NotPosted):
            journal_entry_service.void(entry.id, reason="again")

    # --------------------------------------------------
    # Queries
    # --------------------------------------------------

    def test_list_entries_filters(self):
        posted = journal_entry_service.post(self._draft().id)
        self._draft(journal_date=day(3))

        posted_only = journal_entry_service.list_entries(status=JournalEntry.STATUS_POSTED)
        self.assertEqual([e.id for e in posted_only], [posted.id])
        self.assertEqual(posted_only[0].total_debit, 10000)
        self.assertEqual(posted_only[0].line_count, 2)

        windowed = journal_entry_service.list_entries(start=day(2), end=day(5))
        self.assertEqual(len(windowed), 1)

    def test_entries_by_source(self):
        self._draft(source_type="sale", source_id="INV-1")
        self._draft(source_type="SALE", source_id="INV-2")

        found = journal_entry_service.get_entries_by_source("SALE", "INV-1")
        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].source_type, JournalEntry.SOURCE_SALE)
