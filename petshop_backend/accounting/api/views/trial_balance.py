"""
PATH: accounting/api/views/trial_balance.py

TRIAL BALANCE API VIEW (READ-ONLY)

- Permission-gated: requires accounting.view_journalentry
- ?asOf=<epoch ms> snapshot (inclusive), defaults to now
- ?branch=<uuid> scopes lines by effective branch (untagged lines included)
- A ledger that does not reconcile (no branch filter) is a 500 with
  code "ledger_integrity", never a silently wrong report
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.base import LedgerAPIMixin
from accounting.api.params import epoch_ms_param, uuid_param
from accounting.services.trial_balance_service import TrialBalanceService


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="asOf",
            type=int,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Snapshot in epoch milliseconds (inclusive). Defaults to now.",
        ),
        OpenApiParameter(
            name="branch",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Branch UUID.",
        ),
    ],
    responses={200: dict},
)
class TrialBalanceView(LedgerAPIMixin, APIView):
    def get(self, request):
        self.require_perm(
            request, "accounting.view_journalentry", "You do not have permission to view trial balance."
        )

        service = TrialBalanceService()
        data = service.generate(
            as_of=epoch_ms_param(request, "asOf", "as_of"),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)
