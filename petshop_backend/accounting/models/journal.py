# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY + JOURNAL ENTRY LINE MODELS

A JournalEntry is one financial transaction; its lines carry the debits
and credits (integer minor units).

Guarantees:
- journal_number is unique (JE-YYYYMMDD-NNN, assigned by services)
- journal_date is the accounting effective date (ledger timeline + period locks)
- Every line has exactly one non-zero side (never both, never neither)
- Only Draft entries may be hard-deleted; Posted/Void entries stay for audit
- A Posted entry only changes by moving to Void; a Void entry never changes
- Lines can only be written or deleted while their entry is a Draft
- Entry totals are derived from lines, never stored

Status transitions are owned by accounting.services.journal_entry_service.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounting.models.account import Account
from branches.models import Branch


class JournalEntry(models.Model):
    STATUS_DRAFT = "Draft"
    STATUS_POSTED = "Posted"
    STATUS_VOID = "Void"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_POSTED, "Posted"),
        (STATUS_VOID, "Void"),
    ]

    SOURCE_MANUAL = "MANUAL"
    SOURCE_SALE = "SALE"
    SOURCE_PURCHASE = "PURCHASE"
    SOURCE_EXPENSE = "EXPENSE"
    SOURCE_PAYMENT = "PAYMENT"
    SOURCE_ADJUSTMENT = "ADJUSTMENT"
    SOURCE_YEAR_END_CLOSE = "YEAR_END_CLOSE"

    SOURCE_TYPES = [
        (SOURCE_MANUAL, "Manual"),
        (SOURCE_SALE, "Sale"),
        (SOURCE_PURCHASE, "Purchase"),
        (SOURCE_EXPENSE, "Expense"),
        (SOURCE_PAYMENT, "Payment"),
        (SOURCE_ADJUSTMENT, "Adjustment"),
        (SOURCE_YEAR_END_CLOSE, "Year-end close"),
    ]

    # Generated by period_service.year_end_close only.
    SYSTEM_SOURCE_TYPES = (SOURCE_YEAR_END_CLOSE,)

    journal_number = models.CharField(max_length=32, unique=True)

    journal_date = models.DateTimeField(
        default=timezone.now,
        help_text="Accounting effective date",
    )

    description = models.TextField(help_text="Narrative description of the journal entry")

    source_type = models.CharField(
        max_length=20,
        choices=SOURCE_TYPES,
        default=SOURCE_MANUAL,
    )
    source_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="External reference (sale ID, purchase order ID, etc.)",
    )

    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_DRAFT)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="journal_entries",
        null=True,
        blank=True,
    )

    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.CharField(max_length=150, blank=True, default="")
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.CharField(max_length=150, blank=True, default="")
    void_reason = models.TextField(blank=True, default="")

    created_by = models.CharField(max_length=150, blank=True, default="")
    updated_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-journal_date", "-id"]
        indexes = [
            models.Index(fields=["journal_date"]),
            models.Index(fields=["status", "journal_date"]),
            models.Index(fields=["source_type", "source_id"]),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"{self.journal_number} – {self.status}"

    @property
    def is_draft(self) -> bool:
        return self.status == self.STATUS_DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == self.STATUS_POSTED

    @property
    def is_void(self) -> bool:
        return self.status == self.STATUS_VOID

    def clean(self):
        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

        self.source_id = (self.source_id or "").strip()

        if self.journal_date and timezone.is_naive(self.journal_date):
            self.journal_date = timezone.make_aware(
                self.journal_date, timezone.get_current_timezone()
            )

        if self.status == self.STATUS_VOID and not self.void_reason.strip():
            raise ValidationError({"void_reason": "A void reason is required"})

    # Content a Posted entry keeps for life; only the void fields may follow.
    FROZEN_FIELDS = (
        "journal_number",
        "journal_date",
        "description",
        "source_type",
        "source_id",
        "branch_id",
        "posted_at",
        "posted_by",
    )

    def _assert_mutable(self):
        stored = (
            JournalEntry.objects.filter(pk=self.pk)
            .values("status", *self.FROZEN_FIELDS)
            .first()
        )
        if stored is None or stored["status"] == self.STATUS_DRAFT:
            return

        if stored["status"] == self.STATUS_VOID:
            raise ValidationError(
                f"Journal entry {stored['journal_number']} is Void and cannot be modified"
            )

        if self.status not in (self.STATUS_POSTED, self.STATUS_VOID):
            raise ValidationError(
                f"Journal entry {stored['journal_number']} is Posted; it can only be voided"
            )

        changed = [f for f in self.FROZEN_FIELDS if getattr(self, f) != stored[f]]
        if changed:
            raise ValidationError(
                f"Journal entry {stored['journal_number']} is Posted; "
                f"cannot change {', '.join(changed)}"
            )

    def save(self, *args, **kwargs):
        self.full_clean()
        if self.pk:
            self._assert_mutable()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status != self.STATUS_DRAFT:
            raise ValidationError(
                f"Journal entry {self.journal_number} is {self.status}; only drafts can be deleted"
            )
        return super().delete(*args, **kwargs)


class JournalEntryLine(models.Model):
    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="journal_lines",
        null=True,
        blank=True,
        help_text="Overrides the entry's branch for this line",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    debit_amount = models.PositiveBigIntegerField(default=0)
    credit_amount = models.PositiveBigIntegerField(default=0)

    sort_order = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["entry", "sort_order", "id"]
        indexes = [
            models.Index(fields=["account", "entry"]),
            models.Index(fields=["entry", "sort_order"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(debit_amount__gt=0) & Q(credit_amount=0))
                    | (Q(debit_amount=0) & Q(credit_amount__gt=0))
                ),
                name="chk_journal_line_one_sided",
            ),
        ]
        verbose_name = "Journal Entry Line"
        verbose_name_plural = "Journal Entry Lines"

    def __str__(self):
        side = f"Dr {self.debit_amount}" if self.debit_amount else f"Cr {self.credit_amount}"
        return f"{self.account_id} {side}"

    def clean(self):
        self.description = (self.description or "").strip()

        debit = self.debit_amount or 0
        credit = self.credit_amount or 0
        if debit > 0 and credit > 0:
            raise ValidationError("A line cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise ValidationError("A line must have either debit or credit")

    def _assert_entry_is_draft(self, action: str):
        # Read the stored status; self.entry may be a stale instance.
        status = (
            JournalEntry.objects.filter(pk=self.entry_id)
            .values_list("status", flat=True)
            .first()
        )
        if status is not None and status != JournalEntry.STATUS_DRAFT:
            raise ValidationError(f"Lines of a {status} journal entry cannot be {action}")

    def save(self, *args, **kwargs):
        self.full_clean()
        if self.entry_id:
            self._assert_entry_is_draft("modified")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._assert_entry_is_draft("deleted")
        return super().delete(*args, **kwargs)
