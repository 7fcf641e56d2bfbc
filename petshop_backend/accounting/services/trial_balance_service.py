# accounting/services/trial_balance_service.py

from __future__ import annotations

import logging

from django.db.models import Sum
from django.utils.timezone import now

from accounting.models.account import Account
from accounting.services.dates import to_datetime, to_epoch_ms
from accounting.services.exceptions import LedgerIntegrityError
from accounting.services.ledger_service import posted_lines, sums_by_account

logger = logging.getLogger(__name__)


class TrialBalanceService:
    """
    Trial Balance computation service.

    Guarantees:
    - Scopes to ACTIVE, non-header, non-deleted accounts
    - Uses POSTED entries with journal_date <= as_of (inclusive)
    - Avoids N+1 queries by aggregating in bulk
    - Only non-zero accounts are listed, ordered by code
    - Integer minor units throughout (exact equality, no epsilon)

    Column placement:
    - A balance on the account's normal side goes to that side's column.
    - An abnormal balance (e.g. a DEBIT-normal account in credit) goes to
      the opposite column as an absolute value, flagged `abnormal`, so it
      still counts toward the totals.

    Reconciliation:
    - The raw posted journal (every account, no branch filter) must have
      debits == credits; anything else is a LedgerIntegrityError.
    - Accounts are only deactivated once their balance is zero, but the
      listed columns can still disagree under a branch filter (one entry may
      span branches) or for an as_of before such an account was cleared.
      That is reported as balanced=False and logged, not raised.
    """

    def __init__(self, account_model=Account):
        self.Account = account_model

    def _assert_journal_balanced(self, cutoff):
        agg = posted_lines(as_of=cutoff).aggregate(
            debit=Sum("debit_amount"), credit=Sum("credit_amount")
        )
        debit = int(agg["debit"] or 0)
        credit = int(agg["credit"] or 0)
        if debit == credit:
            return

        context = {
            "as_of": to_epoch_ms(cutoff),
            "journal_debit": debit,
            "journal_credit": credit,
            "unbalanced_entries": self._unbalanced_entry_numbers(cutoff),
        }
        logger.error("Posted journal does not reconcile", extra=context)
        raise LedgerIntegrityError(
            f"Posted journal does not reconcile as of {cutoff.isoformat()}: "
            f"debit={debit} credit={credit}",
            **context,
        )

    @staticmethod
    def _unbalanced_entry_numbers(cutoff) -> list[str]:
        rows = (
            posted_lines(as_of=cutoff)
            .values("entry__journal_number")
            .annotate(debit=Sum("debit_amount"), credit=Sum("credit_amount"))
            .order_by("entry__journal_number")
        )
        return [r["entry__journal_number"] for r in rows if r["debit"] != r["credit"]][:20]

    def generate(self, *, as_of=None, branch=None):
        cutoff = to_datetime(as_of, end_of_day=True) or now()

        accounts = list(
            self.Account.objects.filter(
                is_active=True,
                is_header=False,
                deleted_at__isnull=True,
            )
            .only("id", "code", "name", "account_type", "normal_balance")
            .order_by("code")
        )

        sums = sums_by_account(
            account_ids=[a.id for a in accounts],
            as_of=cutoff,
            branch=branch,
        )

        accounts_output = []
        total_debit = 0
        total_credit = 0

        for acc in accounts:
            debit, credit = sums.get(acc.id, (0, 0))
            balance = acc.signed_balance(debit, credit)
            if balance == 0:
                continue

            on_debit_side = (balance > 0) == acc.is_debit_normal
            debit_col = abs(balance) if on_debit_side else 0
            credit_col = 0 if on_debit_side else abs(balance)

            accounts_output.append(
                {
                    "account_id": acc.id,
                    "account_code": acc.code,
                    "account_name": acc.name,
                    "account_type": acc.account_type,
                    "normal_balance": acc.normal_balance,
                    "balance": balance,
                    "debit": debit_col,
                    "credit": credit_col,
                    "abnormal": balance < 0,
                }
            )

            total_debit += debit_col
            total_credit += credit_col

        balanced = total_debit == total_credit
        branch_id = getattr(branch, "pk", branch) or None

        if branch_id is None:
            self._assert_journal_balanced(cutoff)

        if not balanced:
            logger.warning(
                "Trial balance columns do not reconcile",
                extra={
                    "as_of": to_epoch_ms(cutoff),
                    "branch_id": str(branch_id) if branch_id else None,
                    "total_debit": total_debit,
                    "total_credit": total_credit,
                },
            )

        return {
            "as_of": to_epoch_ms(cutoff),
            "branch_id": str(branch_id) if branch_id else None,
            "accounts": accounts_output,
            "totals": {
                "debit": total_debit,
                "credit": total_credit,
                "balanced": balanced,
            },
        }
