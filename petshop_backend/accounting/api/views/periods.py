# accounting/api/views/periods.py

"""
PATH: accounting/api/views/periods.py

ACCOUNTING PERIOD API

GET  /api/accounting/periods/?year=&status=
POST /api/accounting/periods/                 {year, month, name?}
POST /api/accounting/periods/{id}/close/      OPEN -> CLOSED
POST /api/accounting/periods/{id}/lock/       CLOSED -> LOCKED
POST /api/accounting/periods/{id}/reopen/     CLOSED|LOCKED -> OPEN
GET  /api/accounting/periods/current/          period covering today (null if none)
POST /api/accounting/periods/year-end-close/   {year}

Security:
- view_accountingperiod for reads
- change_accountingperiod for every transition (creation and year-end close too)
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from accounting.api.base import LedgerAPIMixin
from accounting.api.params import choice_param, int_param
from accounting.api.serializers.periods import (
    AccountingPeriodSerializer,
    PeriodCreateSerializer,
    YearEndCloseSerializer,
)
from accounting.models.period import AccountingPeriod
from accounting.services import period_service

CHANGE_PERM = "accounting.change_accountingperiod"


class PeriodListCreateView(LedgerAPIMixin, GenericAPIView):
    serializer_class = PeriodCreateSerializer

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="year", type=int, required=False),
            OpenApiParameter(name="status", type=str, required=False, description="OPEN | CLOSED | LOCKED"),
        ],
        responses=AccountingPeriodSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(
            request,
            "accounting.view_accountingperiod",
            "You do not have permission to view accounting periods.",
        )

        periods = period_service.list_periods(
            year=int_param(request, "year"),
            status=choice_param(request, "status", AccountingPeriod.STATUSES),
        )
        return Response(AccountingPeriodSerializer(periods, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=PeriodCreateSerializer,
        responses={201: AccountingPeriodSerializer},
    )
    def post(self, request, *args, **kwargs):
        self.require_perm(request, CHANGE_PERM, "You do not have permission to manage accounting periods.")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        period = period_service.create_period(**serializer.validated_data, actor=self.actor(request))
        return Response(AccountingPeriodSerializer(period).data, status=status.HTTP_201_CREATED)


class PeriodTransitionView(LedgerAPIMixin, GenericAPIView):
    """
    One view for close / lock / reopen; the URLconf binds `transition`.
    """

    transition = None

    TRANSITIONS = {
        "close": period_service.close_period,
        "lock": period_service.lock_period,
        "reopen": period_service.reopen_period,
    }

    @extend_schema(tags=["accounting"], request=None, responses=AccountingPeriodSerializer)
    def post(self, request, pk, *args, **kwargs):
        self.require_perm(request, CHANGE_PERM, "You do not have permission to manage accounting periods.")

        period = self.TRANSITIONS[self.transition](pk, actor=self.actor(request))
        return Response(AccountingPeriodSerializer(period).data, status=status.HTTP_200_OK)


class CurrentPeriodView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], responses=AccountingPeriodSerializer)
    def get(self, request, *args, **kwargs):
        self.require_perm(
            request,
            "accounting.view_accountingperiod",
            "You do not have permission to view accounting periods.",
        )

        period = period_service.get_current_period()
        data = AccountingPeriodSerializer(period).data if period is not None else None
        return Response(data, status=status.HTTP_200_OK)


class YearEndCloseView(LedgerAPIMixin, GenericAPIView):
    serializer_class = YearEndCloseSerializer

    @extend_schema(tags=["accounting"], request=YearEndCloseSerializer, responses={201: dict})
    def post(self, request, *args, **kwargs):
        self.require_perm(request, CHANGE_PERM, "You do not have permission to manage accounting periods.")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = period_service.year_end_close(
            serializer.validated_data["year"], actor=self.actor(request)
        )
        return Response(result, status=status.HTTP_201_CREATED)
