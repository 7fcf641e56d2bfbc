# accounting/api/views/__init__.py

"""
accounting.api.views package

Expose public API views cleanly without making routing/imports fragile.

Important:
- Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.accounts import (
    AccountByCodeView,
    AccountDetailView,
    AccountListCreateView,
    AccountSearchView,
    AccountTreeView,
)
from accounting.api.views.aging import (
    CollectionMetricsView,
    CustomerOutstandingView,
    OverdueInvoicesView,
    PayablesAgingView,
    ReceivablesAgingView,
    SupplierOutstandingView,
)
from accounting.api.views.journal_entries import (
    JournalEntryDetailView,
    JournalEntryLineCreateView,
    JournalEntryLineDeleteView,
    JournalEntryListCreateView,
    JournalEntryPostView,
    JournalEntryVoidView,
)
from accounting.api.views.ledger import (
    AccountEntriesView,
    AccountHierarchyView,
    AccountLedgerView,
)
from accounting.api.views.periods import (
    CurrentPeriodView,
    PeriodListCreateView,
    PeriodTransitionView,
    YearEndCloseView,
)
from accounting.api.views.reports import BalanceSheetView, CashFlowStatementView, IncomeStatementView
from accounting.api.views.trial_balance import TrialBalanceView

__all__ = [
    "AccountByCodeView",
    "AccountDetailView",
    "AccountListCreateView",
    "AccountSearchView",
    "AccountTreeView",
    "CollectionMetricsView",
    "CustomerOutstandingView",
    "OverdueInvoicesView",
    "PayablesAgingView",
    "ReceivablesAgingView",
    "SupplierOutstandingView",
    "JournalEntryDetailView",
    "JournalEntryLineCreateView",
    "JournalEntryLineDeleteView",
    "JournalEntryListCreateView",
    "JournalEntryPostView",
    "JournalEntryVoidView",
    "AccountEntriesView",
    "AccountHierarchyView",
    "AccountLedgerView",
    "CurrentPeriodView",
    "PeriodListCreateView",
    "PeriodTransitionView",
    "YearEndCloseView",
    "BalanceSheetView",
    "CashFlowStatementView",
    "IncomeStatementView",
    "TrialBalanceView",
]
