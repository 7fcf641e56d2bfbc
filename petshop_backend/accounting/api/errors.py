# accounting/api/errors.py

"""
======================================================
PATH: accounting/api/errors.py
======================================================
SERVICE ERROR -> HTTP MAPPING (single place)

Category -> status:
- validation -> 400
- state      -> 409
- not_found  -> 404
- integrity  -> 500 (logged at ERROR, it is a bug upstream)

Body: {"detail": <message>, "code": <error code>, ...context}
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response

from accounting.services.exceptions import (
    INTEGRITY,
    NOT_FOUND,
    STATE,
    VALIDATION,
    AccountingServiceError,
)

logger = logging.getLogger(__name__)

STATUS_BY_CATEGORY = {
    VALIDATION: status.HTTP_400_BAD_REQUEST,
    STATE: status.HTTP_409_CONFLICT,
    NOT_FOUND: status.HTTP_404_NOT_FOUND,
    INTEGRITY: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _jsonable(value):
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return str(value)


def service_error_response(exc: AccountingServiceError) -> Response:
    http_status = STATUS_BY_CATEGORY.get(exc.category, status.HTTP_400_BAD_REQUEST)

    if exc.category == INTEGRITY:
        logger.error(
            "Ledger integrity failure surfaced to API",
            extra={"error_code": exc.code, "context": _jsonable(exc.context)},
        )

    return Response(_jsonable(exc.as_dict()), status=http_status)


def django_validation_response(exc: DjangoValidationError) -> Response:
    if hasattr(exc, "message_dict"):
        errors = exc.message_dict
        detail = "; ".join(f"{k}: {' '.join(v)}" for k, v in errors.items())
    else:
        errors = None
        detail = " ".join(exc.messages)

    body = {"detail": detail, "code": "invalid"}
    if errors:
        body["errors"] = errors
    return Response(body, status=status.HTTP_400_BAD_REQUEST)
