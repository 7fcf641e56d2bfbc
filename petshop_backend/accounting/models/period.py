# accounting/models/period.py

"""
======================================================
PATH: accounting/models/period.py
======================================================
ACCOUNTING PERIOD MODEL

One calendar month of the books.

Lifecycle:
- OPEN    -> postings and voids allowed
- CLOSED  -> no new postings; voids still allowed
- LOCKED  -> nothing changes (posting and voiding blocked)

Hard rules:
- One period per (year, month)
- start_date/end_date are derived from year + month (UTC, inclusive)
"""

from __future__ import annotations

import calendar
from datetime import datetime, time, timezone as dt_timezone

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q


class AccountingPeriod(models.Model):
    STATUS_OPEN = "OPEN"
    STATUS_CLOSED = "CLOSED"
    STATUS_LOCKED = "LOCKED"

    STATUSES = [
        (STATUS_OPEN, "Open"),
        (STATUS_CLOSED, "Closed"),
        (STATUS_LOCKED, "Locked"),
    ]

    year = models.PositiveSmallIntegerField()
    month = models.PositiveSmallIntegerField()
    name = models.CharField(max_length=50, blank=True)

    start_date = models.DateTimeField(editable=False)
    end_date = models.DateTimeField(editable=False)

    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_OPEN)

    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.CharField(max_length=150, blank=True, default="")

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-year", "-month"]
        indexes = [
            models.Index(fields=["start_date", "end_date"]),
            models.Index(fields=["status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["year", "month"],
                name="uniq_accounting_period_year_month",
            ),
            models.CheckConstraint(
                condition=Q(month__gte=1) & Q(month__lte=12),
                name="chk_accounting_period_month_range",
            ),
            models.CheckConstraint(
                condition=Q(end_date__gte=F("start_date")),
                name="chk_accounting_period_end_gte_start",
            ),
        ]
        verbose_name = "Accounting Period"
        verbose_name_plural = "Accounting Periods"

    def __str__(self):
        return f"{self.name or f'{self.year}-{self.month:02d}'} ({self.status})"

    @staticmethod
    def bounds_for(year: int, month: int) -> tuple[datetime, datetime]:
        last_day = calendar.monthrange(year, month)[1]
        start = datetime(year, month, 1, tzinfo=dt_timezone.utc)
        end = datetime.combine(
            start.date().replace(day=last_day), time.max, tzinfo=dt_timezone.utc
        )
        return start, end

    def clean(self):
        if self.month is None or not 1 <= self.month <= 12:
            raise ValidationError({"month": "month must be between 1 and 12"})
        if self.year is None or self.year < 1900:
            raise ValidationError({"year": "year must be a four digit year"})

        self.start_date, self.end_date = self.bounds_for(self.year, self.month)
        if not (self.name or "").strip():
            self.name = f"{calendar.month_name[self.month]} {self.year}"

    def save(self, *args, **kwargs):
        self.full_clean(exclude=["start_date", "end_date"])
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Accounting periods cannot be deleted")
