# accounting/api/views/reports.py

"""
PATH: accounting/api/views/reports.py

FINANCIAL STATEMENTS API (READ-ONLY)

GET /api/accounting/reports/balance-sheet/?asOf=&branch=
GET /api/accounting/reports/income-statement/?start=&end=&branch=
GET /api/accounting/reports/cash-flow/?start=&end=&branch=
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from accounting.api.base import LedgerAPIMixin
from accounting.api.params import epoch_ms_param, uuid_param
from accounting.services import financial_statement_service

VIEW_PERM = "accounting.view_journalentry"

BRANCH_PARAM = OpenApiParameter(name="branch", type=str, required=False, description="Branch UUID")


class BalanceSheetView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="asOf", type=int, required=False, description="Epoch ms snapshot"),
            BRANCH_PARAM,
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view the balance sheet.")

        data = financial_statement_service.generate_balance_sheet(
            as_of=epoch_ms_param(request, "asOf", "as_of"),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)


class IncomeStatementView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="start", type=int, required=True, description="Epoch ms (inclusive)"),
            OpenApiParameter(name="end", type=int, required=True, description="Epoch ms (inclusive)"),
            BRANCH_PARAM,
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view the income statement.")

        data = financial_statement_service.generate_income_statement(
            start=epoch_ms_param(request, "start", required=True),
            end=epoch_ms_param(request, "end", required=True),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)


class CashFlowStatementView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="start", type=int, required=True, description="Epoch ms (inclusive)"),
            OpenApiParameter(name="end", type=int, required=True, description="Epoch ms (inclusive)"),
            BRANCH_PARAM,
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view the cash flow statement.")

        data = financial_statement_service.generate_cash_flow_statement(
            start=epoch_ms_param(request, "start", required=True),
            end=epoch_ms_param(request, "end", required=True),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)
