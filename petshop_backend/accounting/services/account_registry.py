# accounting/services/account_registry.py

"""
======================================================
PATH: accounting/services/account_registry.py
======================================================
ACCOUNT REGISTRY (CHART OF ACCOUNTS)

This module answers:
- "What account does code X resolve to?"
- "What are the children of header H?"
- "May a journal line post to this account?"

and owns the rare chart mutations (create, rename, reparent,
activate/deactivate, soft delete).

Design goals:
- deterministic (code-ordered everywhere)
- hard-fail with typed errors (never post to the wrong account)
- soft delete only: accounts with postings are never removed

ANTI-CIRCULAR-IMPORT RULE:
- ledger_service is imported lazily (it imports this module).
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.journal import JournalEntryLine
from accounting.services.exceptions import (
    AccountHasBalance,
    AccountHasChildren,
    AccountHasPostings,
    AccountInactive,
    AccountIsHeader,
    AccountNotFound,
    DuplicateAccountCode,
    InvalidAccount,
    InvalidParent,
)

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20


def _live_accounts():
    return Account.objects.filter(deleted_at__isnull=True)


def _with_child_count(qs):
    return qs.annotate(
        child_count=Count("children", filter=Q(children__deleted_at__isnull=True))
    )


def account_summary(account: Account) -> dict:
    return {
        "id": account.id,
        "code": account.code,
        "name": account.name,
        "account_type": account.account_type,
        "category": account.category,
        "normal_balance": account.normal_balance,
        "is_header": account.is_header,
        "is_active": account.is_active,
        "parent_id": account.parent_id,
        "level": account.level,
    }


def _validation_message(exc: ValidationError) -> str:
    if hasattr(exc, "message_dict"):
        return "; ".join(
            f"{field}: {' '.join(msgs)}" for field, msgs in exc.message_dict.items()
        )
    return " ".join(exc.messages)


# ------------------------------------------------------------
# LOOKUPS
# ------------------------------------------------------------


def get_account(account_id) -> Account:
    try:
        return _live_accounts().select_related("parent").get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError) as exc:
        raise AccountNotFound(
            f"Account {account_id} not found", account_id=str(account_id)
        ) from exc


def get_by_code(code: str) -> Account:
    code = (code or "").strip()
    account = _live_accounts().filter(code=code).first()
    if account is None:
        raise AccountNotFound(f"Account with code {code!r} not found", account_code=code)
    return account


def list_children(
    parent_id=None,
    *,
    include_inactive: bool = False,
    account_type: str | None = None,
) -> list[Account]:
    """
    Direct children of a header, ordered by code.
    parent_id=None returns the top-level roots.
    Each account carries a `child_count` annotation.
    """
    qs = _live_accounts()
    if parent_id is None:
        qs = qs.filter(parent__isnull=True)
    else:
        qs = qs.filter(parent_id=parent_id)

    if not include_inactive:
        qs = qs.filter(is_active=True)
    if account_type:
        qs = qs.filter(account_type=account_type)

    return list(_with_child_count(qs).order_by("code"))


def search_accounts(
    query: str,
    *,
    account_type: str | None = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[Account]:
    term = (query or "").strip()
    qs = _live_accounts().filter(is_active=True)
    if term:
        qs = qs.filter(Q(code__icontains=term) | Q(name__icontains=term))
    if account_type:
        qs = qs.filter(account_type=account_type)
    return list(qs.order_by("code")[: max(int(limit), 0)])


def validate_for_posting(account_id) -> Account:
    """
    Must pass before any line referencing the account is accepted.
    """
    account = get_account(account_id)

    if account.is_header:
        raise AccountIsHeader(
            f"Account {account.code} is a header account and cannot receive postings",
            account_id=account.id,
            account_code=account.code,
        )
    if not account.is_active:
        raise AccountInactive(
            f"Account {account.code} is inactive",
            account_id=account.id,
            account_code=account.code,
        )
    return account


def get_account_detail(account_id) -> dict:
    from accounting.services.ledger_service import get_account_balance

    account = get_account(account_id)
    data = account_summary(account)
    data["description"] = account.description
    data["parent"] = account_summary(account.parent) if account.parent_id else None
    data["balance"] = get_account_balance(account)
    return data


def get_account_tree(*, account_type: str | None = None) -> list[dict]:
    """
    Active accounts as a code-ordered forest of nested dicts.
    Built from a parent -> children index (no live pointer chasing).
    """
    qs = _live_accounts().filter(is_active=True)
    if account_type:
        qs = qs.filter(account_type=account_type)
    accounts = list(qs.order_by("code"))

    ids = {a.id for a in accounts}
    children_of: dict = {}
    for acc in accounts:
        parent_key = acc.parent_id if acc.parent_id in ids else None
        children_of.setdefault(parent_key, []).append(acc)

    def build(parent_key, trail: frozenset) -> list[dict]:
        nodes = []
        for acc in children_of.get(parent_key, []):
            if acc.id in trail:
                continue
            node = account_summary(acc)
            node["children"] = build(acc.id, trail | {acc.id})
            nodes.append(node)
        return nodes

    return build(None, frozenset())


# ------------------------------------------------------------
# MUTATIONS
# ------------------------------------------------------------


def _resolve_parent(parent_id) -> Account | None:
    if parent_id in (None, ""):
        return None
    try:
        parent = _live_accounts().get(pk=parent_id)
    except (Account.DoesNotExist, ValueError, TypeError) as exc:
        raise InvalidParent(
            f"Parent account {parent_id} not found", parent_id=str(parent_id)
        ) from exc
    if not parent.is_header:
        raise InvalidParent(
            f"Parent account {parent.code} is not a header account",
            parent_id=parent.id,
        )
    return parent


def _assert_not_descendant(account: Account, new_parent: Account) -> None:
    node = new_parent
    seen = set()
    while node is not None and node.id not in seen:
        if node.id == account.id:
            raise InvalidParent(
                f"Account {account.code} cannot be moved under its own descendant {new_parent.code}",
                account_id=account.id,
                parent_id=new_parent.id,
            )
        seen.add(node.id)
        node = node.parent


def _refresh_descendant_levels(account: Account) -> None:
    frontier = [(account.id, account.level)]
    visited = {account.id}
    while frontier:
        parent_id, parent_level = frontier.pop()
        for child_id in Account.objects.filter(parent_id=parent_id).values_list("id", flat=True):
            if child_id in visited:
                continue
            visited.add(child_id)
            Account.objects.filter(pk=child_id).update(level=parent_level + 1)
            frontier.append((child_id, parent_level + 1))


@transaction.atomic
def create_account(
    *,
    code: str,
    name: str,
    account_type: str,
    category: str = "",
    parent_id=None,
    normal_balance: str | None = None,
    is_header: bool = False,
    description: str = "",
    is_active: bool = True,
    actor: str = "",
) -> Account:
    code = (code or "").strip()
    if code and _live_accounts().filter(code=code).exists():
        raise DuplicateAccountCode(f"Account code {code} already exists", account_code=code)

    parent = _resolve_parent(parent_id)

    account = Account(
        code=code,
        name=name,
        account_type=account_type,
        category=(category or "").strip(),
        normal_balance=normal_balance or "",
        is_header=is_header,
        parent=parent,
        description=(description or "").strip(),
        is_active=is_active,
        created_by=actor,
        updated_by=actor,
    )
    try:
        account.save()
    except ValidationError as exc:
        raise InvalidAccount(_validation_message(exc), account_code=code) from exc

    logger.info(
        "Account created",
        extra={"account_id": account.id, "account_code": account.code, "actor": actor},
    )
    return account


_UNSET = object()


def _assert_zero_balance(account: Account) -> None:
    # Reports list active accounts only; a non-zero balance must stay listed.
    from accounting.services.ledger_service import get_account_balance

    balance = get_account_balance(account)
    if balance:
        raise AccountHasBalance(
            f"Account {account.code} still carries a balance of {balance}; "
            "clear it before deactivating",
            account_id=account.id,
            balance=balance,
        )


@transaction.atomic
def update_account(
    account_id,
    *,
    name: str | None = None,
    category: str | None = None,
    description: str | None = None,
    is_active: bool | None = None,
    parent_id=_UNSET,
    actor: str = "",
) -> Account:
    """
    Rename, reclassify, activate/deactivate or reparent an account.
    parent_id=None moves the account to the top level.
    """
    account = get_account(account_id)

    if name is not None:
        account.name = name
    if category is not None:
        account.category = category.strip()
    if description is not None:
        account.description = description.strip()
    if is_active is not None:
        if account.is_active and not is_active:
            _assert_zero_balance(account)
        account.is_active = bool(is_active)

    reparented = False
    if parent_id is not _UNSET and parent_id != account.parent_id:
        new_parent = _resolve_parent(parent_id)
        if new_parent is not None:
            _assert_not_descendant(account, new_parent)
        account.parent = new_parent
        reparented = True

    account.updated_by = actor
    try:
        account.save()
    except ValidationError as exc:
        raise InvalidAccount(_validation_message(exc), account_id=account.id) from exc

    if reparented:
        _refresh_descendant_levels(account)

    logger.info(
        "Account updated",
        extra={"account_id": account.id, "reparented": reparented, "actor": actor},
    )
    return account


@transaction.atomic
def soft_delete_account(account_id, *, actor: str = "") -> Account:
    account = get_account(account_id)

    if JournalEntryLine.objects.filter(account_id=account.id).exists():
        raise AccountHasPostings(
            f"Account {account.code} has journal lines and cannot be deleted",
            account_id=account.id,
        )
    if _live_accounts().filter(parent_id=account.id).exists():
        raise AccountHasChildren(
            f"Account {account.code} has child accounts and cannot be deleted",
            account_id=account.id,
        )

    account.deleted_at = timezone.now()
    account.is_active = False
    account.updated_by = actor
    Account.objects.filter(pk=account.pk).update(
        deleted_at=account.deleted_at,
        is_active=False,
        updated_by=actor,
        updated_at=account.deleted_at,
    )

    logger.info(
        "Account soft-deleted",
        extra={"account_id": account.id, "account_code": account.code, "actor": actor},
    )
    return account
