# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create JournalEntry / JournalEntryLine
- Move entries Draft -> Posted -> Void
- Enforce debit == credit (exact integer minor units) before posting
- Enforce period locks (engine choke-point)

Everything else (sales, purchases, expenses, the API) must pass through here.

Lifecycle:
- Draft   editable (add/remove lines), hard-deletable, may be unbalanced
- Posted  visible to every ledger query; only transition left is Void
- Void    excluded from ledger queries, kept for audit (never deleted)

YEAR_END_CLOSE is a system source type: only post_closing_entry writes it.

Concurrency:
- post/void lock the entry row (SELECT ... FOR UPDATE) inside a
  transaction, so concurrent transitions on one entry serialize.
- No account balance is stored, so different entries post without
  coordinating with each other.

ANTI-CIRCULAR-IMPORT RULE:
- period_lock is imported lazily inside the enforcement functions.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Max, Sum
from django.utils import timezone

from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.services.account_registry import get_by_code, validate_for_posting
from accounting.services.dates import to_datetime
from accounting.services.exceptions import (
    AlreadyPosted,
    EntryNotDraft,
    EntryVoided,
    JournalEntryCreationError,
    JournalEntryNotFound,
    JournalLineNotFound,
    MalformedLine,
    NotPosted,
    Unbalanced,
    VoidReasonRequired,
)
from accounting.services.numbering import next_journal_number
from branches.models import Branch

logger = logging.getLogger(__name__)

SOURCE_TYPES = {value for value, _label in JournalEntry.SOURCE_TYPES}
CALLER_SOURCE_TYPES = SOURCE_TYPES - set(JournalEntry.SYSTEM_SOURCE_TYPES)

NUMBER_ALLOCATION_ATTEMPTS = 5

_INTEGER_RE = re.compile(r"-?\d+")


# ------------------------------------------------------------
# NORMALIZATION
# ------------------------------------------------------------


def _amount(value, *, line_no: int, field: str) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise MalformedLine(f"Line {line_no}: {field} must be an integer", line=line_no)
    if isinstance(value, float):
        if not value.is_integer():
            raise MalformedLine(
                f"Line {line_no}: {field} must be whole minor units, got {value!r}",
                line=line_no,
            )
        value = int(value)
    if isinstance(value, str):
        raw = value.strip()
        if not _INTEGER_RE.fullmatch(raw):
            raise MalformedLine(
                f"Line {line_no}: {field} must be an integer, got {value!r}", line=line_no
            )
        value = int(raw)
    if not isinstance(value, int):
        raise MalformedLine(f"Line {line_no}: {field} must be an integer", line=line_no)
    if value < 0:
        raise MalformedLine(f"Line {line_no}: {field} cannot be negative", line=line_no)
    return value


def _resolve_branch(branch_id) -> Branch | None:
    if branch_id in (None, ""):
        return None
    try:
        return Branch.objects.get(pk=branch_id)
    except (Branch.DoesNotExist, ValidationError, ValueError, TypeError) as exc:
        raise JournalEntryCreationError(
            f"Branch {branch_id} not found", branch_id=str(branch_id)
        ) from exc


def _normalize_line(line: dict, *, line_no: int) -> dict:
    if not isinstance(line, dict):
        raise MalformedLine(f"Line {line_no}: each line must be an object/dict", line=line_no)

    account_id = line.get("account_id")
    account_code = line.get("account_code")
    if account_id in (None, "") and account_code:
        account_id = get_by_code(account_code).id
    if account_id in (None, ""):
        raise MalformedLine(f"Line {line_no}: account is required", line=line_no)

    account = validate_for_posting(account_id)

    debit = _amount(line.get("debit_amount"), line_no=line_no, field="debit_amount")
    credit = _amount(line.get("credit_amount"), line_no=line_no, field="credit_amount")

    if debit > 0 and credit > 0:
        raise MalformedLine(
            f"Line {line_no}: a line cannot have both debit and credit", line=line_no
        )
    if debit == 0 and credit == 0:
        raise MalformedLine(
            f"Line {line_no}: a line must have either debit or credit", line=line_no
        )

    return {
        "account": account,
        "branch": _resolve_branch(line.get("branch_id")),
        "description": str(line.get("description") or "").strip(),
        "debit_amount": debit,
        "credit_amount": credit,
    }


def entry_totals(entry: JournalEntry) -> tuple[int, int]:
    agg = JournalEntryLine.objects.filter(entry=entry).aggregate(
        debit=Sum("debit_amount"),
        credit=Sum("credit_amount"),
    )
    return int(agg["debit"] or 0), int(agg["credit"] or 0)


def _get_for_update(entry_id) -> JournalEntry:
    try:
        return JournalEntry.objects.select_for_update().get(pk=entry_id)
    except (JournalEntry.DoesNotExist, ValueError, TypeError) as exc:
        raise JournalEntryNotFound(
            f"Journal entry {entry_id} not found", entry_id=str(entry_id)
        ) from exc


def _require_draft(entry: JournalEntry) -> None:
    if not entry.is_draft:
        raise EntryNotDraft(
            f"Journal entry {entry.journal_number} is {entry.status}; only drafts can be edited",
            entry_id=entry.id,
            status=entry.status,
        )


def _enforce_posting_period(journal_date: datetime, source_type: str) -> None:
    from accounting.services.period_lock import assert_can_post

    assert_can_post(journal_date, source_type=source_type)


def _enforce_void_period(journal_date: datetime) -> None:
    from accounting.services.period_lock import assert_can_void

    assert_can_void(journal_date)


# ------------------------------------------------------------
# COMMANDS
# ------------------------------------------------------------


@transaction.atomic
def create_draft(
    *,
    description: str,
    lines: list,
    journal_date=None,
    branch_id=None,
    source_type: str = JournalEntry.SOURCE_MANUAL,
    source_id: str = "",
    journal_number: str | None = None,
    actor: str = "",
) -> JournalEntry:
    """
    Create a Draft entry. Lines are validated one by one (account postable,
    exactly one non-zero side); balance is only required at post time.
    """
    return _create_draft(
        description=description,
        lines=lines,
        journal_date=journal_date,
        branch_id=branch_id,
        source_type=source_type,
        source_id=source_id,
        journal_number=journal_number,
        actor=actor,
        allowed_source_types=CALLER_SOURCE_TYPES,
    )


def _create_draft(
    *,
    description: str,
    lines: list,
    journal_date=None,
    branch_id=None,
    source_type: str = JournalEntry.SOURCE_MANUAL,
    source_id: str = "",
    journal_number: str | None = None,
    actor: str = "",
    allowed_source_types=SOURCE_TYPES,
) -> JournalEntry:
    if not lines:
        raise JournalEntryCreationError("Journal entry must contain at least one line")

    description = (description or "").strip()
    if not description:
        raise JournalEntryCreationError("Journal entry description is required")

    source_type = (source_type or JournalEntry.SOURCE_MANUAL).strip().upper()
    if source_type not in allowed_source_types:
        raise JournalEntryCreationError(
            f"Unknown source_type {source_type!r}", source_type=source_type
        )

    normalized = [_normalize_line(line, line_no=i) for i, line in enumerate(lines, start=1)]

    journal_dt = to_datetime(journal_date) or timezone.now()
    branch = _resolve_branch(branch_id)

    explicit_number = (journal_number or "").strip()
    if explicit_number and JournalEntry.objects.filter(journal_number=explicit_number).exists():
        raise JournalEntryCreationError(
            f"Journal number {explicit_number} already exists", journal_number=explicit_number
        )

    # Generated numbers can collide with a concurrent writer on the same day;
    # the unique constraint rejects the loser, which retries with a fresh number.
    attempts = 1 if explicit_number else NUMBER_ALLOCATION_ATTEMPTS
    for attempt in range(1, attempts + 1):
        number = explicit_number or next_journal_number(journal_dt)
        try:
            with transaction.atomic():
                entry = JournalEntry.objects.create(
                    journal_number=number,
                    journal_date=journal_dt,
                    description=description,
                    source_type=source_type,
                    source_id=(source_id or "").strip(),
                    branch=branch,
                    status=JournalEntry.STATUS_DRAFT,
                    created_by=actor,
                    updated_by=actor,
                )
        except IntegrityError as exc:
            failure = exc
        except ValidationError as exc:
            if "journal_number" not in getattr(exc, "error_dict", {}):
                raise JournalEntryCreationError(
                    f"Failed to create journal entry {number}: {exc}", journal_number=number
                ) from exc
            failure = exc
        else:
            break

        if attempt == attempts:
            raise JournalEntryCreationError(
                f"Failed to create journal entry {number}: {failure}", journal_number=number
            ) from failure
        logger.warning(
            "Journal number collision, retrying",
            extra={"journal_number": number, "attempt": attempt},
        )

    JournalEntryLine.objects.bulk_create(
        [
            JournalEntryLine(entry=entry, sort_order=i, **line)
            for i, line in enumerate(normalized, start=1)
        ]
    )

    logger.info(
        "Journal entry drafted",
        extra={"entry_id": entry.id, "journal_number": number, "actor": actor},
    )
    return entry


@transaction.atomic
def post(entry_id, *, actor: str = "") -> JournalEntry:
    entry = _get_for_update(entry_id)

    if entry.is_posted:
        raise AlreadyPosted(
            f"Journal entry {entry.journal_number} is already posted", entry_id=entry.id
        )
    if entry.is_void:
        raise EntryVoided(
            f"Journal entry {entry.journal_number} has been voided", entry_id=entry.id
        )

    lines = list(entry.lines.all())
    if not lines:
        raise JournalEntryCreationError(
            f"Journal entry {entry.journal_number} has no lines", entry_id=entry.id
        )

    # Accounts may have been deactivated since the draft was written.
    for line in lines:
        validate_for_posting(line.account_id)

    debit_total = sum(line.debit_amount for line in lines)
    credit_total = sum(line.credit_amount for line in lines)
    if debit_total != credit_total:
        raise Unbalanced(debit_total, credit_total, entry_id=entry.id)

    _enforce_posting_period(entry.journal_date, entry.source_type)

    now = timezone.now()
    entry.status = JournalEntry.STATUS_POSTED
    entry.posted_at = now
    entry.posted_by = actor
    entry.updated_by = actor
    entry.save()

    logger.info(
        "Journal entry posted",
        extra={
            "entry_id": entry.id,
            "journal_number": entry.journal_number,
            "total_minor": debit_total,
            "actor": actor,
        },
    )
    return entry


def create_and_post(**kwargs) -> JournalEntry:
    """
    Trusted internal callers (sales/purchases/expenses) draft and post in
    one atomic step; any failure leaves nothing behind.
    """
    actor = kwargs.get("actor", "")
    with transaction.atomic():
        entry = create_draft(**kwargs)
        return post(entry.id, actor=actor)


def post_closing_entry(**kwargs) -> JournalEntry:
    """
    Year-end closing entries: the one system source type, allowed to post
    into a CLOSED (never a LOCKED) period.
    """
    actor = kwargs.get("actor", "")
    with transaction.atomic():
        entry = _create_draft(**kwargs, source_type=JournalEntry.SOURCE_YEAR_END_CLOSE)
        return post(entry.id, actor=actor)


@transaction.atomic
def void(entry_id, *, reason: str, actor: str = "") -> JournalEntry:
    entry = _get_for_update(entry_id)

    if not entry.is_posted:
        raise NotPosted(
            f"Journal entry {entry.journal_number} is {entry.status}; only posted entries can be voided",
            entry_id=entry.id,
            status=entry.status,
        )

    reason = (reason or "").strip()
    if not reason:
        raise VoidReasonRequired("A reason is required to void a journal entry", entry_id=entry.id)

    _enforce_void_period(entry.journal_date)

    entry.status = JournalEntry.STATUS_VOID
    entry.voided_at = timezone.now()
    entry.voided_by = actor
    entry.void_reason = reason
    entry.updated_by = actor
    entry.save()

    logger.info(
        "Journal entry voided",
        extra={
            "entry_id": entry.id,
            "journal_number": entry.journal_number,
            "reason": reason,
            "actor": actor,
        },
    )
    return entry


@transaction.atomic
def add_line(entry_id, *, line: dict, actor: str = "") -> JournalEntryLine:
    entry = _get_for_update(entry_id)
    _require_draft(entry)

    next_order = (entry.lines.aggregate(m=Max("sort_order"))["m"] or 0) + 1
    normalized = _normalize_line(line, line_no=next_order)

    created = JournalEntryLine.objects.create(entry=entry, sort_order=next_order, **normalized)

    entry.updated_by = actor
    entry.save(update_fields=["updated_by", "updated_at"])
    return created


@transaction.atomic
def remove_line(entry_id, line_id, *, actor: str = "") -> None:
    entry = _get_for_update(entry_id)
    _require_draft(entry)

    deleted, _ = JournalEntryLine.objects.filter(entry=entry, pk=line_id).delete()
    if not deleted:
        raise JournalLineNotFound(
            f"Line {line_id} not found on journal entry {entry.journal_number}",
            entry_id=entry.id,
            line_id=str(line_id),
        )

    entry.updated_by = actor
    entry.save(update_fields=["updated_by", "updated_at"])


@transaction.atomic
def delete_draft(entry_id, *, actor: str = "") -> None:
    entry = _get_for_update(entry_id)
    _require_draft(entry)

    number = entry.journal_number
    entry.delete()

    logger.info(
        "Draft journal entry deleted",
        extra={"journal_number": number, "actor": actor},
    )


# ------------------------------------------------------------
# QUERIES
# ------------------------------------------------------------


def _with_totals(qs):
    return qs.annotate(
        line_count=Count("lines"),
        total_debit=Sum("lines__debit_amount"),
        total_credit=Sum("lines__credit_amount"),
    )


def get_entry(entry_id) -> JournalEntry:
    """
    Any status (including Void) is retrievable by id.
    """
    try:
        return (
            JournalEntry.objects.select_related("branch")
            .prefetch_related("lines__account", "lines__branch")
            .get(pk=entry_id)
        )
    except (JournalEntry.DoesNotExist, ValueError, TypeError) as exc:
        raise JournalEntryNotFound(
            f"Journal entry {entry_id} not found", entry_id=str(entry_id)
        ) from exc


def list_entries(
    *,
    status: str | None = None,
    source_type: str | None = None,
    start=None,
    end=None,
    limit: int | None = None,
) -> list[JournalEntry]:
    qs = JournalEntry.objects.all()
    if status:
        qs = qs.filter(status=status)
    if source_type:
        qs = qs.filter(source_type=source_type)

    start_dt = to_datetime(start)
    end_dt = to_datetime(end, end_of_day=True)
    if start_dt is not None:
        qs = qs.filter(journal_date__gte=start_dt)
    if end_dt is not None:
        qs = qs.filter(journal_date__lte=end_dt)

    qs = _with_totals(qs).order_by("-journal_date", "-id")
    if limit:
        qs = qs[: int(limit)]
    return list(qs)


def get_entries_by_source(source_type: str, source_id: str) -> list[JournalEntry]:
    qs = JournalEntry.objects.filter(
        source_type=(source_type or "").strip().upper(),
        source_id=(source_id or "").strip(),
    )
    return list(_with_totals(qs).order_by("-journal_date", "-id"))
