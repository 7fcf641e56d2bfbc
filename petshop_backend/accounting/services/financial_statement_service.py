# accounting/services/financial_statement_service.py

"""
FINANCIAL STATEMENT SERVICE (AUTHORITATIVE)

This module produces formal financial statements from the ledger.

Statements supported:
- Balance Sheet (as of a date)
- Income Statement (movements within a period)
- Cash Flow Statement (indirect method, movements within a period)

RULES:
- READ-ONLY (never writes)
- Posted journal lines are the single source of truth
- Every non-deleted detail account counts (inactive ones still hold value)
- Section amounts are oriented by statement side, not by normal balance,
  so contra accounts (e.g. accumulated depreciation) reduce their section
- Unclosed revenue - expense appears as "Current Period Earnings" in equity
- Assets = Liabilities + Equity must hold; without a branch filter a
  mismatch is a LedgerIntegrityError
- Year-end closing entries are left out of period movements (income
  statement, cash flow) so a closed year still reports its revenue
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.utils.timezone import now

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.services.dates import to_datetime, to_epoch_ms
from accounting.services.exceptions import LedgerIntegrityError
from accounting.services.ledger_service import sums_by_account

logger = logging.getLogger(__name__)

DEBIT_SIDE_TYPES = (Account.ASSET, Account.EXPENSE)

INVESTING_CATEGORIES = ("Fixed Asset", "Non-current Asset")
FINANCING_LIABILITY_CATEGORIES = ("Long-term Liability",)

SECTION_BY_TYPE = {
    Account.ASSET: "assets",
    Account.LIABILITY: "liabilities",
    Account.EQUITY: "equity",
}


def _detail_accounts():
    return list(
        Account.objects.filter(is_header=False, deleted_at__isnull=True)
        .only("id", "code", "name", "account_type", "category", "normal_balance")
        .order_by("code")
    )


def _side_amount(account: Account, debit: int, credit: int) -> int:
    if account.account_type in DEBIT_SIDE_TYPES:
        return debit - credit
    return credit - debit


def _row(account: Account, amount: int) -> dict:
    return {
        "account_id": account.id,
        "code": account.code,
        "name": account.name,
        "category": account.category,
        "amount": amount,
    }


def generate_balance_sheet(*, as_of=None, branch=None) -> dict:
    """
    Returns:
        {
            "as_of": <epoch ms>,
            "assets": [{"account_id","code","name","category","amount"}...],
            "liabilities": [...],
            "equity": [... + Current Period Earnings],
            "totals": {
                "assets", "liabilities", "equity",
                "liabilities_plus_equity", "balanced"
            }
        }
    """
    cutoff = to_datetime(as_of, end_of_day=True) or now()
    accounts = _detail_accounts()
    sums = sums_by_account(account_ids=[a.id for a in accounts], as_of=cutoff, branch=branch)

    sections = {"assets": [], "liabilities": [], "equity": []}
    totals = {"assets": 0, "liabilities": 0, "equity": 0}
    revenue_total = 0
    expense_total = 0

    for acc in accounts:
        amount = _side_amount(acc, *sums.get(acc.id, (0, 0)))
        if amount == 0:
            continue

        if acc.account_type == Account.REVENUE:
            revenue_total += amount
            continue
        if acc.account_type == Account.EXPENSE:
            expense_total += amount
            continue

        section = SECTION_BY_TYPE[acc.account_type]
        sections[section].append(_row(acc, amount))
        totals[section] += amount

    current_earnings = revenue_total - expense_total
    if current_earnings != 0:
        sections["equity"].append(
            {
                "account_id": None,
                "code": "",
                "name": "Current Period Earnings",
                "category": "Retained Earnings",
                "amount": current_earnings,
            }
        )
        totals["equity"] += current_earnings

    liabilities_plus_equity = totals["liabilities"] + totals["equity"]
    balanced = totals["assets"] == liabilities_plus_equity
    branch_id = getattr(branch, "pk", branch) or None

    if not balanced:
        context = {
            "as_of": to_epoch_ms(cutoff),
            "branch_id": str(branch_id) if branch_id else None,
            "assets": totals["assets"],
            "liabilities_plus_equity": liabilities_plus_equity,
        }
        if branch_id is None:
            logger.error("Balance sheet does not balance", extra=context)
            raise LedgerIntegrityError(
                f"Balance sheet does not balance: assets={totals['assets']} "
                f"liabilities+equity={liabilities_plus_equity}",
                **context,
            )
        logger.warning("Branch balance sheet does not balance", extra=context)

    return {
        "as_of": to_epoch_ms(cutoff),
        "branch_id": str(branch_id) if branch_id else None,
        "assets": sections["assets"],
        "liabilities": sections["liabilities"],
        "equity": sections["equity"],
        "totals": {
            "assets": totals["assets"],
            "liabilities": totals["liabilities"],
            "equity": totals["equity"],
            "liabilities_plus_equity": liabilities_plus_equity,
            "balanced": balanced,
        },
    }


def _window(start, end, statement: str):
    start_dt = to_datetime(start)
    end_dt = to_datetime(end, end_of_day=True)
    if start_dt is None or end_dt is None:
        raise ValueError(f"start and end are required for {statement}")
    return start_dt, end_dt


def generate_income_statement(*, start, end, branch=None) -> dict:
    start_dt, end_dt = _window(start, end, "an income statement")

    accounts = [
        a for a in _detail_accounts() if a.account_type in (Account.REVENUE, Account.EXPENSE)
    ]
    sums = sums_by_account(
        account_ids=[a.id for a in accounts],
        start=start_dt,
        as_of=end_dt,
        branch=branch,
        exclude_source_types=JournalEntry.SYSTEM_SOURCE_TYPES,
    )

    revenue, expenses = [], []
    total_revenue = 0
    total_expenses = 0

    for acc in accounts:
        amount = _side_amount(acc, *sums.get(acc.id, (0, 0)))
        if amount == 0:
            continue
        if acc.account_type == Account.REVENUE:
            revenue.append(_row(acc, amount))
            total_revenue += amount
        else:
            expenses.append(_row(acc, amount))
            total_expenses += amount

    branch_id = getattr(branch, "pk", branch) or None
    return {
        "start": to_epoch_ms(start_dt),
        "end": to_epoch_ms(end_dt),
        "branch_id": str(branch_id) if branch_id else None,
        "revenue": revenue,
        "expenses": expenses,
        "totals": {
            "revenue": total_revenue,
            "expenses": total_expenses,
            "net_income": total_revenue - total_expenses,
        },
    }


# ------------------------------------------------------------
# Cash flow (indirect method)
# ------------------------------------------------------------


def _cash_flow_section(account: Account) -> str:
    if account.account_type == Account.EQUITY:
        return "financing"
    if account.account_type == Account.LIABILITY:
        if account.category in FINANCING_LIABILITY_CATEGORIES:
            return "financing"
        return "operating"
    # Contra assets (accumulated depreciation) are non-cash add-backs.
    if account.is_debit_normal and account.category in INVESTING_CATEGORIES:
        return "investing"
    return "operating"


def _cash_total(cash_accounts, sums) -> int:
    return sum(acc.signed_balance(*sums.get(acc.id, (0, 0))) for acc in cash_accounts)


def generate_cash_flow_statement(*, start, end, branch=None) -> dict:
    """
    Net income plus the period change of every non-cash balance sheet
    account, grouped into operating / investing / financing. Each row's
    amount is its cash effect (credit - debit over the window).

    Cash accounts are settings.ACCOUNTING_CASH_ACCOUNT_CODES.
    `reconciled` is net_cash_change == cash_ending - cash_beginning.

    Returns:
        {
            "start", "end", "branch_id",
            "operating_activities": {"net_income", "adjustments", "total"},
            "investing_activities": {"items", "total"},
            "financing_activities": {"items", "total"},
            "totals": {"net_cash_change", "cash_beginning", "cash_ending", "reconciled"}
        }
    """
    start_dt, end_dt = _window(start, end, "a cash flow statement")

    cash_codes = set(getattr(settings, "ACCOUNTING_CASH_ACCOUNT_CODES", []))
    accounts = _detail_accounts()
    cash_accounts = [a for a in accounts if a.code in cash_codes]
    cash_ids = {a.id for a in cash_accounts}

    sums = sums_by_account(
        account_ids=[a.id for a in accounts],
        start=start_dt,
        as_of=end_dt,
        branch=branch,
        exclude_source_types=JournalEntry.SYSTEM_SOURCE_TYPES,
    )

    net_income = 0
    sections = {"operating": [], "investing": [], "financing": []}
    section_totals = {"operating": 0, "investing": 0, "financing": 0}

    for acc in accounts:
        if acc.id in cash_ids:
            continue
        debit, credit = sums.get(acc.id, (0, 0))
        effect = credit - debit
        if effect == 0:
            continue

        if acc.account_type in (Account.REVENUE, Account.EXPENSE):
            net_income += effect
            continue

        section = _cash_flow_section(acc)
        sections[section].append(_row(acc, effect))
        section_totals[section] += effect

    cash_ids_list = list(cash_ids)
    beginning_sums = sums_by_account(
        account_ids=cash_ids_list,
        as_of=start_dt - timedelta(microseconds=1),
        branch=branch,
    )
    ending_sums = sums_by_account(account_ids=cash_ids_list, as_of=end_dt, branch=branch)
    cash_beginning = _cash_total(cash_accounts, beginning_sums)
    cash_ending = _cash_total(cash_accounts, ending_sums)

    operating_total = net_income + section_totals["operating"]
    net_cash_change = operating_total + section_totals["investing"] + section_totals["financing"]
    reconciled = net_cash_change == cash_ending - cash_beginning
    branch_id = getattr(branch, "pk", branch) or None

    if not reconciled:
        logger.warning(
            "Cash flow statement does not reconcile to cash balances",
            extra={
                "start": to_epoch_ms(start_dt),
                "end": to_epoch_ms(end_dt),
                "branch_id": str(branch_id) if branch_id else None,
                "net_cash_change": net_cash_change,
                "cash_change": cash_ending - cash_beginning,
            },
        )

    return {
        "start": to_epoch_ms(start_dt),
        "end": to_epoch_ms(end_dt),
        "branch_id": str(branch_id) if branch_id else None,
        "operating_activities": {
            "net_income": net_income,
            "adjustments": sections["operating"],
            "total": operating_total,
        },
        "investing_activities": {
            "items": sections["investing"],
            "total": section_totals["investing"],
        },
        "financing_activities": {
            "items": sections["financing"],
            "total": section_totals["financing"],
        },
        "totals": {
            "net_cash_change": net_cash_change,
            "cash_beginning": cash_beginning,
            "cash_ending": cash_ending,
            "reconciled": reconciled,
        },
    }
