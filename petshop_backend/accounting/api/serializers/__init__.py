# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
)
from accounting.api.serializers.journal_entries import (
    JournalEntryCreateSerializer,
    JournalEntryLineSerializer,
    JournalEntryListSerializer,
    JournalEntrySerializer,
    JournalLineInputSerializer,
    VoidEntrySerializer,
)
from accounting.api.serializers.periods import (
    AccountingPeriodSerializer,
    PeriodCreateSerializer,
)

__all__ = [
    "AccountSerializer",
    "AccountCreateSerializer",
    "AccountUpdateSerializer",
    "JournalEntryCreateSerializer",
    "JournalEntryLineSerializer",
    "JournalEntryListSerializer",
    "JournalEntrySerializer",
    "JournalLineInputSerializer",
    "VoidEntrySerializer",
    "AccountingPeriodSerializer",
    "PeriodCreateSerializer",
]
