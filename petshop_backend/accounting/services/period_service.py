# accounting/services/period_service.py

"""
======================================================
PATH: accounting/services/period_service.py
======================================================
ACCOUNTING PERIOD SERVICE

Lifecycle rules:
- create(year, month)  -> OPEN (one per month)
- close                -> OPEN only; refused while drafts are dated inside
- lock                 -> CLOSED only
- reopen               -> CLOSED/LOCKED; refused while a later period is
                          CLOSED or LOCKED (books close in order)
- year_end_close       -> December CLOSED; posts one YEAR_END_CLOSE entry
                          moving the year's revenue and expense into
                          retained earnings (once per year)

No balances are snapshotted on close: balances are always derived
from posted journal lines.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.period import AccountingPeriod
from accounting.services import journal_entry_service
from accounting.services.account_registry import get_by_code
from accounting.services.dates import to_datetime
from accounting.services.exceptions import (
    InvalidAccount,
    InvalidPeriod,
    PeriodAlreadyExists,
    PeriodNotFound,
    PeriodStateError,
    YearAlreadyClosed,
    YearNotClosed,
)
from accounting.services.ledger_service import sums_by_account

logger = logging.getLogger(__name__)


def get_period(period_id, *, for_update: bool = False) -> AccountingPeriod:
    qs = AccountingPeriod.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=period_id)
    except (AccountingPeriod.DoesNotExist, ValueError, TypeError) as exc:
        raise PeriodNotFound(
            f"Accounting period {period_id} not found", period_id=str(period_id)
        ) from exc


def list_periods(*, year: int | None = None, status: str | None = None) -> list[AccountingPeriod]:
    qs = AccountingPeriod.objects.all()
    if year is not None:
        qs = qs.filter(year=year)
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("-year", "-month"))


@transaction.atomic
def create_period(*, year: int, month: int, name: str = "", actor: str = "") -> AccountingPeriod:
    if AccountingPeriod.objects.filter(year=year, month=month).exists():
        raise PeriodAlreadyExists(
            f"Accounting period {year}-{month:02d} already exists", year=year, month=month
        )

    period = AccountingPeriod(year=year, month=month, name=name, created_by=actor)
    try:
        period.save()
    except ValidationError as exc:
        raise InvalidPeriod(" ".join(exc.messages), year=year, month=month) from exc

    logger.info(
        "Accounting period created",
        extra={"period_id": period.id, "year": year, "month": month, "actor": actor},
    )
    return period


@transaction.atomic
def close_period(period_id, *, actor: str = "") -> AccountingPeriod:
    period = get_period(period_id, for_update=True)

    if period.status != AccountingPeriod.STATUS_OPEN:
        raise PeriodStateError(
            f"Period {period.name} is already {period.status.lower()}",
            period_id=period.id,
            period_status=period.status,
        )

    draft_count = JournalEntry.objects.filter(
        status=JournalEntry.STATUS_DRAFT,
        journal_date__gte=period.start_date,
        journal_date__lte=period.end_date,
    ).count()
    if draft_count:
        raise PeriodStateError(
            f"Cannot close {period.name}: {draft_count} draft journal entries are dated inside it. "
            "Post or delete them first.",
            period_id=period.id,
            draft_count=draft_count,
        )

    period.status = AccountingPeriod.STATUS_CLOSED
    period.closed_at = timezone.now()
    period.closed_by = actor
    period.save()

    logger.info(
        "Accounting period closed",
        extra={"period_id": period.id, "period": period.name, "actor": actor},
    )
    return period


@transaction.atomic
def lock_period(period_id, *, actor: str = "") -> AccountingPeriod:
    period = get_period(period_id, for_update=True)

    if period.status != AccountingPeriod.STATUS_CLOSED:
        raise PeriodStateError(
            f"Only closed periods can be locked ({period.name} is {period.status.lower()})",
            period_id=period.id,
            period_status=period.status,
        )

    period.status = AccountingPeriod.STATUS_LOCKED
    period.save()

    logger.info(
        "Accounting period locked",
        extra={"period_id": period.id, "period": period.name, "actor": actor},
    )
    return period


@transaction.atomic
def reopen_period(period_id, *, actor: str = "") -> AccountingPeriod:
    period = get_period(period_id, for_update=True)

    if period.status == AccountingPeriod.STATUS_OPEN:
        raise PeriodStateError(
            f"Period {period.name} is already open",
            period_id=period.id,
            period_status=period.status,
        )

    later_closed = AccountingPeriod.objects.filter(
        Q(year__gt=period.year) | Q(year=period.year, month__gt=period.month),
        status__in=(AccountingPeriod.STATUS_CLOSED, AccountingPeriod.STATUS_LOCKED),
    ).exists()
    if later_closed:
        raise PeriodStateError(
            f"Cannot reopen {period.name}: a later period is closed or locked",
            period_id=period.id,
        )

    period.status = AccountingPeriod.STATUS_OPEN
    period.closed_at = None
    period.closed_by = ""
    period.save()

    logger.info(
        "Accounting period reopened",
        extra={"period_id": period.id, "period": period.name, "actor": actor},
    )
    return period


def get_current_period(now: datetime | None = None) -> AccountingPeriod | None:
    """
    The period covering the month of `now` (default: current time), or None.
    """
    now = now or timezone.now()
    return AccountingPeriod.objects.filter(
        start_date__lte=now,
        end_date__gte=now,
    ).first()


# ------------------------------------------------------------
# Year-end close
# ------------------------------------------------------------


def _retained_earnings_account() -> Account:
    code = getattr(settings, "ACCOUNTING_RETAINED_EARNINGS_CODE", "3200")
    account = get_by_code(code)
    if account.account_type != Account.EQUITY or account.is_header:
        raise InvalidAccount(
            f"Retained earnings account {code} must be an equity detail account",
            account_code=code,
        )
    return account


def _closing_lines(year: int) -> tuple[list[dict], int, int]:
    """
    One line per revenue/expense account with a non-zero net for the year,
    reversing that net. Returns (lines, total_revenue, total_expenses).
    """
    accounts = list(
        Account.objects.filter(
            account_type__in=(Account.REVENUE, Account.EXPENSE),
            is_header=False,
            is_active=True,
            deleted_at__isnull=True,
        ).order_by("code")
    )
    sums = sums_by_account(
        account_ids=[a.id for a in accounts],
        start=to_datetime(date(year, 1, 1)),
        as_of=to_datetime(date(year, 12, 31), end_of_day=True),
        exclude_source_types=JournalEntry.SYSTEM_SOURCE_TYPES,
    )

    lines = []
    total_revenue = 0
    total_expenses = 0
    for acc in accounts:
        debit, credit = sums.get(acc.id, (0, 0))
        if acc.account_type == Account.REVENUE:
            net = credit - debit
            total_revenue += net
            # Revenue carries a credit net; closing debits it back to zero.
            closing_debit, closing_credit = max(net, 0), max(-net, 0)
        else:
            net = debit - credit
            total_expenses += net
            closing_debit, closing_credit = max(-net, 0), max(net, 0)

        if net == 0:
            continue
        lines.append(
            {
                "account_id": acc.id,
                "debit_amount": closing_debit,
                "credit_amount": closing_credit,
                "description": f"Close {acc.code} {acc.name}",
            }
        )
    return lines, total_revenue, total_expenses


@transaction.atomic
def year_end_close(year: int, *, actor: str = "") -> dict:
    """
    Close a fiscal year into retained earnings.

    Requires the December period to exist and be CLOSED. The closing entry
    is dated Dec 31 end of day and is the only posting a CLOSED period
    accepts. Voiding it reopens the year for another close.

    Returns:
        {
            "year", "net_income", "total_revenue", "total_expenses",
            "journal_entry_id", "journal_number"   (None when nothing to close)
        }
    """
    december = (
        AccountingPeriod.objects.select_for_update()
        .filter(year=year, month=12)
        .first()
    )
    if december is None:
        raise YearNotClosed(
            f"No December {year} period exists; create and close it first", year=year
        )
    if december.status != AccountingPeriod.STATUS_CLOSED:
        raise YearNotClosed(
            f"December {year} must be closed before year-end close (it is {december.status.lower()})",
            year=year,
            period_status=december.status,
        )

    source_id = str(year)
    already = JournalEntry.objects.filter(
        source_type=JournalEntry.SOURCE_YEAR_END_CLOSE,
        source_id=source_id,
        status=JournalEntry.STATUS_POSTED,
    ).first()
    if already is not None:
        raise YearAlreadyClosed(
            f"Fiscal year {year} is already closed by {already.journal_number}",
            year=year,
            entry_id=already.id,
        )

    retained = _retained_earnings_account()
    lines, total_revenue, total_expenses = _closing_lines(year)
    net_income = total_revenue - total_expenses

    result = {
        "year": year,
        "net_income": net_income,
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "journal_entry_id": None,
        "journal_number": None,
    }
    if not lines:
        logger.info("Year-end close: nothing to close", extra={"year": year, "actor": actor})
        return result

    if net_income:
        lines.append(
            {
                "account_id": retained.id,
                "debit_amount": max(-net_income, 0),
                "credit_amount": max(net_income, 0),
                "description": f"Net income {year}",
            }
        )

    entry = journal_entry_service.post_closing_entry(
        description=f"Year-end close {year}",
        lines=lines,
        journal_date=to_datetime(date(year, 12, 31), end_of_day=True),
        source_id=source_id,
        actor=actor,
    )

    logger.info(
        "Fiscal year closed",
        extra={
            "year": year,
            "entry_id": entry.id,
            "journal_number": entry.journal_number,
            "net_income_minor": net_income,
            "actor": actor,
        },
    )
    result["journal_entry_id"] = entry.id
    result["journal_number"] = entry.journal_number
    return result
