# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.

Every error carries:
- code      stable machine-readable identifier (API "code" field)
- category  validation | state | not_found | integrity
- context   structured details (ids, totals) for callers and logs

The API layer maps categories to HTTP status codes in one place
(accounting/api/errors.py). Services never swallow these.
"""

from __future__ import annotations

VALIDATION = "validation"
STATE = "state"
NOT_FOUND = "not_found"
INTEGRITY = "integrity"


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""

    code = "accounting_error"
    category = VALIDATION

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self.args[0])
        self.context = context

    def as_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        payload.update(self.context)
        return payload


# ------------------------------------------------------------
# Validation errors (caller's fault, not retryable)
# ------------------------------------------------------------


class JournalEntryCreationError(AccountingServiceError):
    """Raised when a journal entry cannot be created."""

    code = "invalid_entry"


class MalformedLine(JournalEntryCreationError):
    """A line must carry exactly one non-zero, non-negative amount."""

    code = "malformed_line"


class AccountIsHeader(AccountingServiceError):
    """Header accounts cannot receive postings."""

    code = "account_is_header"


class AccountInactive(AccountingServiceError):
    """Inactive accounts cannot receive postings."""

    code = "account_inactive"


class Unbalanced(AccountingServiceError):
    """Journal entry debits and credits do not balance."""

    code = "unbalanced"

    def __init__(self, debit_total: int, credit_total: int, **context):
        super().__init__(
            f"Journal entry not balanced: debits={debit_total} credits={credit_total}",
            debit_total=debit_total,
            credit_total=credit_total,
            **context,
        )
        self.debit_total = debit_total
        self.credit_total = credit_total


class VoidReasonRequired(AccountingServiceError):
    """A reason is required to void a journal entry."""

    code = "void_reason_required"


class EntryNotDraft(AccountingServiceError):
    """Only draft journal entries can be edited or removed."""

    code = "entry_not_draft"


class InvalidAccount(AccountingServiceError):
    """Account data failed validation."""

    code = "invalid_account"


class DuplicateAccountCode(AccountingServiceError):
    """Account code already in use."""

    code = "duplicate_account_code"


class InvalidParent(AccountingServiceError):
    """Parent account is missing, deleted, not a header, or would create a cycle."""

    code = "invalid_parent"


class AccountHasPostings(AccountingServiceError):
    """Accounts with journal lines cannot be deleted."""

    code = "account_has_postings"


class AccountHasChildren(AccountingServiceError):
    """Accounts with child accounts cannot be deleted."""

    code = "account_has_children"


class AccountHasBalance(AccountingServiceError):
    """Accounts still carrying a posted balance cannot be deactivated."""

    code = "account_has_balance"


class InvalidPeriod(AccountingServiceError):
    """Accounting period data failed validation."""

    code = "invalid_period"


class PeriodAlreadyExists(AccountingServiceError):
    """An accounting period already exists for this month."""

    code = "period_exists"


# ------------------------------------------------------------
# State errors (valid request, wrong lifecycle state)
# ------------------------------------------------------------


class AccountingStateError(AccountingServiceError):
    """Operation is not allowed in the current lifecycle state."""

    code = "invalid_state"
    category = STATE


class AlreadyPosted(AccountingStateError):
    """Journal entry is already posted."""

    code = "already_posted"


class EntryVoided(AccountingStateError):
    """Journal entry has been voided."""

    code = "entry_voided"


class NotPosted(AccountingStateError):
    """Only posted journal entries can be voided."""

    code = "not_posted"


class PeriodClosed(AccountingStateError):
    """The accounting period for this date does not accept the change."""

    code = "period_closed"


class PeriodStateError(AccountingStateError):
    """Accounting period transition is not allowed."""

    code = "period_state"


class YearNotClosed(AccountingStateError):
    """Year-end close needs the December period CLOSED first."""

    code = "year_not_closed"


class YearAlreadyClosed(AccountingStateError):
    """A posted closing entry already exists for the year."""

    code = "year_already_closed"


# ------------------------------------------------------------
# Not-found errors
# ------------------------------------------------------------


class NotFound(AccountingServiceError):
    """Requested record does not exist."""

    code = "not_found"
    category = NOT_FOUND


class AccountNotFound(NotFound):
    """Account not found."""

    code = "account_not_found"


class JournalEntryNotFound(NotFound):
    """Journal entry not found."""

    code = "journal_entry_not_found"


class JournalLineNotFound(NotFound):
    """Journal entry line not found."""

    code = "journal_line_not_found"


class CounterpartyNotFound(NotFound):
    """Supplier or customer not found."""

    code = "counterparty_not_found"


class PeriodNotFound(NotFound):
    """Accounting period not found."""

    code = "period_not_found"


# ------------------------------------------------------------
# Integrity errors (a bug upstream, never a user mistake)
# ------------------------------------------------------------


class LedgerIntegrityError(AccountingServiceError):
    """Ledger data violates a double-entry invariant."""

    code = "ledger_integrity"
    category = INTEGRITY
