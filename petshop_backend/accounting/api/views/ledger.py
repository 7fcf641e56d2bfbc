# accounting/api/views/ledger.py

"""
PATH: accounting/api/views/ledger.py

LEDGER QUERY API (READ-ONLY)

GET /api/accounting/ledger/account/{id}/           running-balance ledger (?start, ?end, ?branch)
GET /api/accounting/ledger/account/{id}/entries/   posted entries touching the account
GET /api/accounting/ledger/hierarchy/              header rollup tree (?type, ?asOf, ?branch)

Trial balance lives in trial_balance.py.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from accounting.api.base import LedgerAPIMixin
from accounting.api.params import choice_param, epoch_ms_param, int_param, uuid_param
from accounting.models.account import Account
from accounting.services import hierarchy_service, ledger_service

VIEW_PERM = "accounting.view_journalentry"

RANGE_PARAMS = [
    OpenApiParameter(name="start", type=int, required=False, description="Epoch ms (inclusive)"),
    OpenApiParameter(name="end", type=int, required=False, description="Epoch ms (inclusive)"),
]
BRANCH_PARAM = OpenApiParameter(name="branch", type=str, required=False, description="Branch UUID")
AS_OF_PARAM = OpenApiParameter(name="asOf", type=int, required=False, description="Epoch ms snapshot")


class AccountLedgerView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], parameters=[*RANGE_PARAMS, BRANCH_PARAM], responses={200: dict})
    def get(self, request, pk, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view the ledger.")

        data = ledger_service.get_account_ledger(
            pk,
            start=epoch_ms_param(request, "start"),
            end=epoch_ms_param(request, "end"),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)


class AccountEntriesView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[*RANGE_PARAMS, OpenApiParameter(name="limit", type=int, required=False)],
        responses={200: dict},
    )
    def get(self, request, pk, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view the ledger.")

        rows = ledger_service.get_journal_entries_by_account(
            pk,
            start=epoch_ms_param(request, "start"),
            end=epoch_ms_param(request, "end"),
            limit=int_param(request, "limit", default=ledger_service.DEFAULT_ENTRY_LIMIT, minimum=1),
        )
        return Response(rows, status=status.HTTP_200_OK)


class AccountHierarchyView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="type", type=str, required=False),
            AS_OF_PARAM,
            BRANCH_PARAM,
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, "accounting.view_account", "You do not have permission to view accounts.")

        data = hierarchy_service.get_account_balances(
            account_type=choice_param(request, "type", Account.ACCOUNT_TYPES),
            as_of=epoch_ms_param(request, "asOf", "as_of"),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)
