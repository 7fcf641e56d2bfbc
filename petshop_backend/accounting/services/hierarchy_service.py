# accounting/services/hierarchy_service.py

"""
======================================================
PATH: accounting/services/hierarchy_service.py
======================================================
HIERARCHY ROLLUP CALCULATOR

balance(detail) = signed posted balance (ledger_service rule)
balance(header) = sum(balance(child) for child in children)

Design:
- Load the selected accounts once, index parent_id -> children at query
  time, resolve post-order from that index. No live FK pointer chasing.
- An account whose parent is outside the selection (type filter, inactive
  or deleted parent) is treated as a root so its balance is not lost.
- A cycle in the parent chain is a LedgerIntegrityError (logged with the
  account ids involved), never an infinite recursion.
- Every level is ordered by account code.
"""

from __future__ import annotations

import logging

from accounting.models.account import Account
from accounting.services.dates import to_datetime, to_epoch_ms
from accounting.services.exceptions import LedgerIntegrityError
from accounting.services.ledger_service import balances_by_account

logger = logging.getLogger(__name__)


class _Cycle(Exception):
    def __init__(self, path):
        super().__init__(path)
        self.path = path


def build_children_index(accounts) -> tuple[dict, list]:
    """
    Returns ({parent_id: [children...]}, roots), children and roots code-ordered.
    """
    by_id = {a.id: a for a in accounts}
    children_of: dict = {}
    roots = []
    for acc in sorted(by_id.values(), key=lambda a: a.code):
        if acc.parent_id is not None and acc.parent_id in by_id:
            children_of.setdefault(acc.parent_id, []).append(acc)
        else:
            roots.append(acc)
    return children_of, roots


def _find_cycle(accounts) -> list | None:
    parent_of = {a.id: a.parent_id for a in accounts}
    for start in parent_of:
        seen = []
        node = start
        while node is not None and node in parent_of:
            if node in seen:
                return seen[seen.index(node):]
            seen.append(node)
            node = parent_of[node]
    return None


def rollup(accounts, leaf_balances: dict) -> list[dict]:
    """
    Pure tree assembly over already-computed detail balances.
    """
    accounts = list(accounts)
    cycle = _find_cycle(accounts)
    if cycle:
        raise _Cycle(cycle)

    children_of, roots = build_children_index(accounts)

    def resolve(acc: Account) -> dict:
        children = [resolve(child) for child in children_of.get(acc.id, [])]
        if acc.is_header:
            balance = sum(child["balance"] for child in children)
        else:
            balance = leaf_balances.get(acc.id, 0) + sum(child["balance"] for child in children)

        return {
            "account_id": acc.id,
            "code": acc.code,
            "name": acc.name,
            "account_type": acc.account_type,
            "category": acc.category,
            "normal_balance": acc.normal_balance,
            "is_header": acc.is_header,
            "level": acc.level,
            "balance": balance,
            "children": children,
        }

    return [resolve(root) for root in roots]


def get_account_balances(*, account_type: str | None = None, as_of=None, branch=None) -> dict:
    cutoff = to_datetime(as_of, end_of_day=True)

    qs = Account.objects.filter(is_active=True, deleted_at__isnull=True)
    if account_type:
        qs = qs.filter(account_type=account_type)
    accounts = list(qs.order_by("code"))

    leaf_balances = balances_by_account(
        [a for a in accounts if not a.is_header],
        as_of=cutoff,
        branch=branch,
    )

    try:
        tree = rollup(accounts, leaf_balances)
    except _Cycle as exc:
        logger.error(
            "Cyclic account parent chain detected",
            extra={"account_ids": exc.path},
        )
        raise LedgerIntegrityError(
            f"Cyclic account parent chain: {exc.path}",
            account_ids=exc.path,
        ) from None

    return {
        "as_of": to_epoch_ms(cutoff),
        "account_type": account_type,
        "accounts": tree,
        "total": sum(node["balance"] for node in tree) if account_type else None,
    }
