# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API

GET    /api/accounting/accounts/                 children of ?parent (top level when omitted)
POST   /api/accounting/accounts/                 create
GET    /api/accounting/accounts/{id}/            detail (+ parent, lifetime balance)
PATCH  /api/accounting/accounts/{id}/            rename / reclassify / (de)activate / reparent
DELETE /api/accounting/accounts/{id}/            soft delete
GET    /api/accounting/accounts/by-code/{code}/  resolve a code
GET    /api/accounting/accounts/tree/            active accounts as a tree
GET    /api/accounting/accounts/search/?q=       code/name search

Permissions: accounting.view_account / add_account / change_account / delete_account
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from accounting.api.base import LedgerAPIMixin
from accounting.api.params import bool_param, choice_param, int_param
from accounting.api.serializers.accounts import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
)
from accounting.models.account import Account
from accounting.services import account_registry

VIEW_PERM = "accounting.view_account"

TYPE_PARAM = OpenApiParameter(
    name="type",
    type=str,
    location=OpenApiParameter.QUERY,
    required=False,
    description="ASSET | LIABILITY | EQUITY | REVENUE | EXPENSE",
)


class AccountListCreateView(LedgerAPIMixin, GenericAPIView):
    serializer_class = AccountCreateSerializer

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="parent", type=int, required=False),
            TYPE_PARAM,
            OpenApiParameter(name="include_inactive", type=bool, required=False),
        ],
        responses=AccountSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view accounts.")

        accounts = account_registry.list_children(
            int_param(request, "parent"),
            include_inactive=bool_param(request, "include_inactive"),
            account_type=choice_param(request, "type", Account.ACCOUNT_TYPES),
        )
        return Response(AccountSerializer(accounts, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=AccountCreateSerializer,
        responses={201: AccountSerializer},
    )
    def post(self, request, *args, **kwargs):
        self.require_perm(request, "accounting.add_account", "You do not have permission to create accounts.")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        account = account_registry.create_account(**serializer.validated_data, actor=self.actor(request))
        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)


class AccountDetailView(LedgerAPIMixin, GenericAPIView):
    serializer_class = AccountUpdateSerializer

    @extend_schema(tags=["accounting"], responses={200: dict})
    def get(self, request, pk, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view accounts.")
        return Response(account_registry.get_account_detail(pk), status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=AccountUpdateSerializer,
        responses=AccountSerializer,
    )
    def patch(self, request, pk, *args, **kwargs):
        self.require_perm(request, "accounting.change_account", "You do not have permission to change accounts.")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        account = account_registry.update_account(pk, **serializer.validated_data, actor=self.actor(request))
        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["accounting"], responses={204: None})
    def delete(self, request, pk, *args, **kwargs):
        self.require_perm(request, "accounting.delete_account", "You do not have permission to delete accounts.")

        account_registry.soft_delete_account(pk, actor=self.actor(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class AccountByCodeView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], responses=AccountSerializer)
    def get(self, request, code, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view accounts.")
        account = account_registry.get_by_code(code)
        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)


class AccountTreeView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(tags=["accounting"], parameters=[TYPE_PARAM], responses={200: dict})
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view accounts.")
        tree = account_registry.get_account_tree(
            account_type=choice_param(request, "type", Account.ACCOUNT_TYPES),
        )
        return Response(tree, status=status.HTTP_200_OK)


class AccountSearchView(LedgerAPIMixin, GenericAPIView):
    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="q", type=str, required=True),
            TYPE_PARAM,
            OpenApiParameter(name="limit", type=int, required=False),
        ],
        responses=AccountSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        self.require_perm(request, VIEW_PERM, "You do not have permission to view accounts.")

        accounts = account_registry.search_accounts(
            request.query_params.get("q", ""),
            account_type=choice_param(request, "type", Account.ACCOUNT_TYPES),
            limit=int_param(request, "limit", default=account_registry.DEFAULT_SEARCH_LIMIT, minimum=1),
        )
        return Response(AccountSerializer(accounts, many=True).data, status=status.HTTP_200_OK)
