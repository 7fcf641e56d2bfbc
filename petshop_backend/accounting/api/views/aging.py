# accounting/api/views/aging.py

"""
PATH: accounting/api/views/aging.py

AP / AR AGING API (READ-ONLY)

GET /api/accounting/aging/payables/?asOf=&branch=
GET /api/accounting/aging/payables/{supplier_id}/?history=
GET /api/accounting/aging/receivables/?asOf=&branch=
GET /api/accounting/aging/receivables/{customer_id}/?history=
GET /api/accounting/aging/receivables/overdue/?branch=&days_overdue=
GET /api/accounting/aging/receivables/collections/?start=&end=&branch=

Requires accounting.view_journalentry (same audience as the ledger reports).
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from accounting.api.base import LedgerAPIMixin
from accounting.api.params import bool_param, epoch_ms_param, int_param, uuid_param
from accounting.services import aging_service

VIEW_PERM = "accounting.view_journalentry"
DENIED = "You do not have permission to view aging reports."

REPORT_PARAMS = [
    OpenApiParameter(name="asOf", type=int, required=False, description="Epoch ms, defaults to now"),
    OpenApiParameter(name="branch", type=str, required=False, description="Branch UUID"),
]
HISTORY_PARAM = OpenApiParameter(
    name="history", type=bool, required=False, description="Include payment history"
)


class PayablesAgingView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], parameters=REPORT_PARAMS, responses={200: dict})
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, DENIED)

        data = aging_service.get_payables_aging(
            as_of=epoch_ms_param(request, "asOf", "as_of"),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)


class SupplierOutstandingView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], parameters=[HISTORY_PARAM], responses={200: dict})
    def get(self, request, supplier_id, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, DENIED)

        data = aging_service.get_supplier_outstanding(
            supplier_id,
            include_history=bool_param(request, "history"),
        )
        return Response(data, status=status.HTTP_200_OK)


class ReceivablesAgingView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], parameters=REPORT_PARAMS, responses={200: dict})
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, DENIED)

        data = aging_service.get_receivables_aging(
            as_of=epoch_ms_param(request, "asOf", "as_of"),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)


class CustomerOutstandingView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], parameters=[HISTORY_PARAM], responses={200: dict})
    def get(self, request, customer_id, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, DENIED)

        data = aging_service.get_customer_outstanding(
            customer_id,
            include_history=bool_param(request, "history"),
        )
        return Response(data, status=status.HTTP_200_OK)


class OverdueInvoicesView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="branch", type=str, required=False),
            OpenApiParameter(name="days_overdue", type=int, required=False, description="Default 30"),
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, DENIED)

        rows = aging_service.get_overdue_invoices(
            branch=uuid_param(request, "branch"),
            days_overdue=int_param(request, "days_overdue", "daysOverdue", minimum=0),
        )
        return Response(rows, status=status.HTTP_200_OK)


class CollectionMetricsView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="start", type=int, required=True),
            OpenApiParameter(name="end", type=int, required=True),
            OpenApiParameter(name="branch", type=str, required=False),
        ],
        responses={200: dict},
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, DENIED)

        data = aging_service.get_collection_metrics(
            start=epoch_ms_param(request, "start", required=True),
            end=epoch_ms_param(request, "end", required=True),
            branch=uuid_param(request, "branch"),
        )
        return Response(data, status=status.HTTP_200_OK)
