# accounting/services/period_lock.py

"""
======================================================
PATH: accounting/services/period_lock.py
======================================================
PERIOD LOCK GUARD

Purpose:
- Enforce accounting period status on the ledger timeline.
- Posting is blocked when journal_date falls in a CLOSED or LOCKED period.
- Voiding is blocked only when journal_date falls in a LOCKED period.
- Year-end closing entries may post into a CLOSED period (the year must
  be closed first), never into a LOCKED one.

Design:
- Thin, reusable guard
- Called by journal_entry_service (engine choke-point)
- Dates with no period row are open
- settings.ACCOUNTING_PERIOD_LOCKS_ENABLED=False disables the guard
"""

from __future__ import annotations

from datetime import datetime

from django.conf import settings

from accounting.models.journal import JournalEntry
from accounting.models.period import AccountingPeriod
from accounting.services.exceptions import PeriodClosed

POSTING_BLOCKED = (AccountingPeriod.STATUS_CLOSED, AccountingPeriod.STATUS_LOCKED)
VOID_BLOCKED = (AccountingPeriod.STATUS_LOCKED,)
CLOSING_BLOCKED = (AccountingPeriod.STATUS_LOCKED,)


def _locks_enabled() -> bool:
    return bool(getattr(settings, "ACCOUNTING_PERIOD_LOCKS_ENABLED", True))


def period_for(journal_date: datetime) -> AccountingPeriod | None:
    return AccountingPeriod.objects.filter(
        start_date__lte=journal_date,
        end_date__gte=journal_date,
    ).first()


def _assert_not_in(journal_date: datetime, statuses: tuple, action: str) -> None:
    if journal_date is None or not _locks_enabled():
        return

    period = period_for(journal_date)
    if period is not None and period.status in statuses:
        raise PeriodClosed(
            f"{action} blocked: {journal_date.date()} falls inside {period.status.lower()} period {period.name}.",
            period_id=period.id,
            period_status=period.status,
        )


def assert_can_post(journal_date: datetime, *, source_type: str | None = None) -> None:
    """
    Raises:
        PeriodClosed if the date is inside a CLOSED or LOCKED period
        (LOCKED only, for a year-end closing entry).
    """
    blocked = CLOSING_BLOCKED if source_type == JournalEntry.SOURCE_YEAR_END_CLOSE else POSTING_BLOCKED
    _assert_not_in(journal_date, blocked, "Posting")


def assert_can_void(journal_date: datetime) -> None:
    """
    Raises:
        PeriodClosed if the date is inside a LOCKED period.
    """
    _assert_not_in(journal_date, VOID_BLOCKED, "Voiding")
