# accounting/services/ledger_service.py

"""
======================================================
PATH: accounting/services/ledger_service.py
======================================================
LEDGER QUERY ENGINE

Derives balances from POSTED journal lines on every call.
Nothing here writes; no running total is ever stored.

Signed balance rule (per account normal side):
- DEBIT-normal:  balance += debit - credit
- CREDIT-normal: balance += credit - debit

Branch filter:
- A line's effective branch is line.branch, falling back to entry.branch.
- Filtering by branch B keeps lines whose effective branch is B or empty
  (untagged lines are global).

Dates:
- start is inclusive; lines before it roll into the opening balance
- end / as_of are inclusive; lines after are ignored
"""

from __future__ import annotations

from django.db.models import Q, Sum

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.services.account_registry import account_summary, get_account
from accounting.services.dates import to_datetime, to_epoch_ms

DEFAULT_ENTRY_LIMIT = 50


def _branch_pk(branch):
    if branch in (None, ""):
        return None
    return getattr(branch, "pk", branch)


def branch_filter_q(branch) -> Q:
    branch_id = _branch_pk(branch)
    return Q(branch_id=branch_id) | (
        Q(branch__isnull=True)
        & (Q(entry__branch__isnull=True) | Q(entry__branch_id=branch_id))
    )


def posted_lines(*, account_ids=None, as_of=None, branch=None):
    qs = JournalEntryLine.objects.filter(entry__status=JournalEntry.STATUS_POSTED)
    if account_ids is not None:
        qs = qs.filter(account_id__in=list(account_ids))
    if as_of is not None:
        qs = qs.filter(entry__journal_date__lte=as_of)
    if _branch_pk(branch) is not None:
        qs = qs.filter(branch_filter_q(branch))
    return qs


def sums_by_account(
    *, account_ids=None, as_of=None, branch=None, start=None, exclude_source_types=()
) -> dict:
    """
    {account_id: (debit_total, credit_total)} in one aggregate query.
    """
    qs = posted_lines(account_ids=account_ids, as_of=as_of, branch=branch)
    if start is not None:
        qs = qs.filter(entry__journal_date__gte=start)
    if exclude_source_types:
        qs = qs.exclude(entry__source_type__in=list(exclude_source_types))

    rows = (
        qs.values("account_id")
        .annotate(debit=Sum("debit_amount"), credit=Sum("credit_amount"))
        .order_by()
    )
    return {r["account_id"]: (int(r["debit"] or 0), int(r["credit"] or 0)) for r in rows}


def balances_by_account(accounts, *, as_of=None, branch=None) -> dict:
    """
    {account_id: signed balance} for the given detail accounts.
    """
    accounts = list(accounts)
    sums = sums_by_account(
        account_ids=[a.id for a in accounts],
        as_of=to_datetime(as_of, end_of_day=True),
        branch=branch,
    )
    return {a.id: a.signed_balance(*sums.get(a.id, (0, 0))) for a in accounts}


def get_account_balance(account: Account, *, as_of=None, branch=None) -> int:
    return balances_by_account([account], as_of=as_of, branch=branch)[account.id]


def get_account_ledger(account_id, *, start=None, end=None, branch=None) -> dict:
    account = get_account(account_id)
    start_dt = to_datetime(start)
    end_dt = to_datetime(end, end_of_day=True)

    lines = posted_lines(account_ids=[account.id], branch=branch)

    opening = 0
    if start_dt is not None:
        agg = lines.filter(entry__journal_date__lt=start_dt).aggregate(
            debit=Sum("debit_amount"), credit=Sum("credit_amount")
        )
        opening = account.signed_balance(int(agg["debit"] or 0), int(agg["credit"] or 0))
        lines = lines.filter(entry__journal_date__gte=start_dt)

    if end_dt is not None:
        lines = lines.filter(entry__journal_date__lte=end_dt)

    lines = lines.select_related("entry").order_by(
        "entry__journal_date", "entry_id", "sort_order", "id"
    )

    running = opening
    total_debit = 0
    total_credit = 0
    transactions = []

    for line in lines:
        entry = line.entry
        running += account.signed_balance(line.debit_amount, line.credit_amount)
        total_debit += line.debit_amount
        total_credit += line.credit_amount

        branch_id = line.branch_id or entry.branch_id
        transactions.append(
            {
                "entry_id": entry.id,
                "journal_number": entry.journal_number,
                "journal_date": to_epoch_ms(entry.journal_date),
                "line_id": line.id,
                "description": line.description or entry.description,
                "source_type": entry.source_type,
                "source_id": entry.source_id,
                "branch_id": str(branch_id) if branch_id else None,
                "debit": line.debit_amount,
                "credit": line.credit_amount,
                "balance": running,
            }
        )

    return {
        "account": account_summary(account),
        "start": to_epoch_ms(start_dt),
        "end": to_epoch_ms(end_dt),
        "opening_balance": opening,
        "transactions": transactions,
        "closing_balance": running,
        "total_debit": total_debit,
        "total_credit": total_credit,
    }


def get_journal_entries_by_account(
    account_id,
    *,
    start=None,
    end=None,
    limit: int = DEFAULT_ENTRY_LIMIT,
) -> list[dict]:
    """
    Posted entries touching the account, newest first, with the
    account's own debit/credit within each entry.
    """
    account = get_account(account_id)
    start_dt = to_datetime(start)
    end_dt = to_datetime(end, end_of_day=True)

    account_lines = Q(lines__account_id=account.id)
    qs = JournalEntry.objects.filter(status=JournalEntry.STATUS_POSTED).filter(account_lines)
    if start_dt is not None:
        qs = qs.filter(journal_date__gte=start_dt)
    if end_dt is not None:
        qs = qs.filter(journal_date__lte=end_dt)

    qs = (
        qs.annotate(
            account_debit=Sum("lines__debit_amount", filter=account_lines),
            account_credit=Sum("lines__credit_amount", filter=account_lines),
        )
        .order_by("-journal_date", "-id")
    )[: max(int(limit), 0)]

    return [
        {
            "entry_id": e.id,
            "journal_number": e.journal_number,
            "journal_date": to_epoch_ms(e.journal_date),
            "description": e.description,
            "source_type": e.source_type,
            "source_id": e.source_id,
            "debit": int(e.account_debit or 0),
            "credit": int(e.account_credit or 0),
        }
        for e in qs
    ]
