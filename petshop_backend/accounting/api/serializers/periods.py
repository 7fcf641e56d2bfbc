# accounting/api/serializers/periods.py

from rest_framework import serializers

from accounting.api.fields import EpochMillisecondsField
from accounting.models.period import AccountingPeriod


class AccountingPeriodSerializer(serializers.ModelSerializer):
    start_date = EpochMillisecondsField(read_only=True)
    end_date = EpochMillisecondsField(read_only=True)
    closed_at = EpochMillisecondsField(read_only=True)

    class Meta:
        model = AccountingPeriod
        fields = (
            "id",
            "year",
            "month",
            "name",
            "start_date",
            "end_date",
            "status",
            "closed_at",
            "closed_by",
        )
        read_only_fields = fields


class PeriodCreateSerializer(serializers.Serializer):
    """
    Month range (1..12) is validated by the model, surfaced as invalid_period.
    """

    year = serializers.IntegerField()
    month = serializers.IntegerField()
    name = serializers.CharField(required=False, allow_blank=True, max_length=50, default="")


class YearEndCloseSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1900)
