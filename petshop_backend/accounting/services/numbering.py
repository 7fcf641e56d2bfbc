# accounting/services/numbering.py

"""
JOURNAL NUMBERING

Format: JE-YYYYMMDD-NNN
- date part is the journal date (UTC)
- NNN is the next free sequence for that day (3 digits, grows past 999)

Called inside the journal_entry_service transaction without a lock.
Concurrent writers on the same day may pick the same number; the unique
constraint on journal_number rejects the loser and create_draft retries
with a fresh one.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone as dt_timezone

from accounting.models.journal import JournalEntry

PREFIX = "JE"
_SEQ_RE = re.compile(r"-(\d+)$")


def day_prefix(journal_date: datetime) -> str:
    day = journal_date.astimezone(dt_timezone.utc).strftime("%Y%m%d")
    return f"{PREFIX}-{day}-"


def next_journal_number(journal_date: datetime) -> str:
    prefix = day_prefix(journal_date)

    highest = 0
    for number in JournalEntry.objects.filter(
        journal_number__startswith=prefix
    ).values_list("journal_number", flat=True):
        m = _SEQ_RE.search(number)
        if m:
            highest = max(highest, int(m.group(1)))

    return f"{prefix}{highest + 1:03d}"
