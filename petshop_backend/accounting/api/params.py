# accounting/api/params.py

"""
Query parameter parsing for ledger endpoints.

Dates travel as Unix-epoch milliseconds. Bad input is a 400 with the
offending parameter named, never a silent default.
"""

from __future__ import annotations

import uuid

from rest_framework.exceptions import ValidationError

from accounting.services.dates import from_epoch_ms

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


def _raw(request, *names):
    for name in names:
        value = request.query_params.get(name)
        if value is not None:
            return name, str(value).strip()
    return names[0], None


def epoch_ms_param(request, *names, required: bool = False):
    name, raw = _raw(request, *names)
    if raw in (None, ""):
        if required:
            raise ValidationError({name: "This query parameter is required (epoch milliseconds)."})
        return None
    try:
        return from_epoch_ms(int(raw))
    except (TypeError, ValueError, OverflowError):
        raise ValidationError({name: "Expected an integer timestamp in epoch milliseconds."})


def bool_param(request, *names, default: bool = False) -> bool:
    name, raw = _raw(request, *names)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValidationError({name: "Expected a boolean (true/false)."})


def int_param(request, *names, default=None, minimum: int | None = None):
    name, raw = _raw(request, *names)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError({name: "Expected an integer."})
    if minimum is not None and value < minimum:
        raise ValidationError({name: f"Must be >= {minimum}."})
    return value


def uuid_param(request, *names):
    name, raw = _raw(request, *names)
    if raw in (None, ""):
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise ValidationError({name: "Expected a UUID."})


def choice_param(request, name: str, choices):
    """
    Case-insensitive match against model choices; returns the stored value.
    """
    _, raw = _raw(request, name)
    if raw in (None, ""):
        return None
    allowed = [c[0] if isinstance(c, (list, tuple)) else c for c in choices]
    for value in allowed:
        if value.lower() == raw.lower():
            return value
    raise ValidationError({name: f"Must be one of: {', '.join(allowed)}."})
