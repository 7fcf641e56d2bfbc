# accounting/api/fields.py

from rest_framework import serializers

from accounting.services.dates import from_epoch_ms, to_epoch_ms


class EpochMillisecondsField(serializers.Field):
    """
    Aware datetime <-> Unix-epoch milliseconds (UTC).
    """

    default_error_messages = {
        "invalid": "Expected an integer timestamp in epoch milliseconds.",
    }

    def to_representation(self, value):
        return to_epoch_ms(value)

    def to_internal_value(self, data):
        if isinstance(data, bool):
            self.fail("invalid")
        try:
            return from_epoch_ms(int(data))
        except (TypeError, ValueError, OverflowError):
            self.fail("invalid")
