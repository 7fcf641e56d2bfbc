# accounting/api/urls.py

from django.urls import path

from accounting.api.views import (
    AccountByCodeView,
    AccountDetailView,
    AccountEntriesView,
    AccountHierarchyView,
    AccountLedgerView,
    AccountListCreateView,
    AccountSearchView,
    AccountTreeView,
    BalanceSheetView,
    CashFlowStatementView,
    CollectionMetricsView,
    CurrentPeriodView,
    CustomerOutstandingView,
    IncomeStatementView,
    JournalEntryDetailView,
    JournalEntryLineCreateView,
    JournalEntryLineDeleteView,
    JournalEntryListCreateView,
    JournalEntryPostView,
    JournalEntryVoidView,
    OverdueInvoicesView,
    PayablesAgingView,
    PeriodListCreateView,
    PeriodTransitionView,
    ReceivablesAgingView,
    SupplierOutstandingView,
    TrialBalanceView,
    YearEndCloseView,
)

urlpatterns = [
    # Chart of accounts
    path("accounts/", AccountListCreateView.as_view(), name="accounts"),
    path("accounts/tree/", AccountTreeView.as_view(), name="account-tree"),
    path("accounts/search/", AccountSearchView.as_view(), name="account-search"),
    path("accounts/by-code/<str:code>/", AccountByCodeView.as_view(), name="account-by-code"),
    path("accounts/<int:pk>/", AccountDetailView.as_view(), name="account-detail"),
    # Journal entries
    path("journal-entries/", JournalEntryListCreateView.as_view(), name="journal-entries"),
    path("journal-entries/<int:pk>/", JournalEntryDetailView.as_view(), name="journal-entry-detail"),
    path("journal-entries/<int:pk>/post/", JournalEntryPostView.as_view(), name="journal-entry-post"),
    path("journal-entries/<int:pk>/void/", JournalEntryVoidView.as_view(), name="journal-entry-void"),
    path("journal-entries/<int:pk>/lines/", JournalEntryLineCreateView.as_view(), name="journal-entry-lines"),
    path(
        "journal-entries/<int:pk>/lines/<int:line_id>/",
        JournalEntryLineDeleteView.as_view(),
        name="journal-entry-line-detail",
    ),
    # Ledger queries
    path("ledger/account/<int:pk>/", AccountLedgerView.as_view(), name="account-ledger"),
    path("ledger/account/<int:pk>/entries/", AccountEntriesView.as_view(), name="account-entries"),
    path("ledger/trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("ledger/hierarchy/", AccountHierarchyView.as_view(), name="account-hierarchy"),
    # Statements
    path("reports/balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    path("reports/income-statement/", IncomeStatementView.as_view(), name="income-statement"),
    path("reports/cash-flow/", CashFlowStatementView.as_view(), name="cash-flow"),
    # Periods
    path("periods/", PeriodListCreateView.as_view(), name="periods"),
    path("periods/current/", CurrentPeriodView.as_view(), name="period-current"),
    path("periods/year-end-close/", YearEndCloseView.as_view(), name="year-end-close"),
    path("periods/<int:pk>/close/", PeriodTransitionView.as_view(transition="close"), name="period-close"),
    path("periods/<int:pk>/lock/", PeriodTransitionView.as_view(transition="lock"), name="period-lock"),
    path("periods/<int:pk>/reopen/", PeriodTransitionView.as_view(transition="reopen"), name="period-reopen"),
    # Aging
    path("aging/payables/", PayablesAgingView.as_view(), name="payables-aging"),
    path("aging/payables/<uuid:supplier_id>/", SupplierOutstandingView.as_view(), name="supplier-outstanding"),
    path("aging/receivables/", ReceivablesAgingView.as_view(), name="receivables-aging"),
    path("aging/receivables/overdue/", OverdueInvoicesView.as_view(), name="overdue-invoices"),
    path("aging/receivables/collections/", CollectionMetricsView.as_view(), name="collection-metrics"),
    path(
        "aging/receivables/<uuid:customer_id>/",
        CustomerOutstandingView.as_view(),
        name="customer-outstanding",
    ),
]
