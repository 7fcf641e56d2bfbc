# accounting/api/base.py

"""
PATH: accounting/api/base.py

Shared behaviour for every ledger view:
- IsAuthenticated
- explicit Django model permission checks (no role hardcoding)
- service errors translated by accounting.api.errors
- the acting principal passed to services as a plain username
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from accounting.api.errors import django_validation_response, service_error_response
from accounting.services.exceptions import AccountingServiceError


class LedgerAPIMixin:
    permission_classes = [IsAuthenticated]

    def require_perm(self, request, perm: str, message: str) -> None:
        if not request.user.has_perm(perm):
            raise PermissionDenied(message)

    @staticmethod
    def actor(request) -> str:
        return request.user.get_username()

    def handle_exception(self, exc):
        if isinstance(exc, AccountingServiceError):
            return service_error_response(exc)
        if isinstance(exc, DjangoValidationError):
            return django_validation_response(exc)
        return super().handle_exception(exc)
