# accounting/api/serializers/journal_entries.py

"""
======================================================
PATH: accounting/api/serializers/journal_entries.py
======================================================
JOURNAL ENTRY SERIALIZERS

Input serializers only check request shape. Accounting rules (postable
account, one-sided lines, balance) are enforced by journal_entry_service.
"""

from rest_framework import serializers

from accounting.api.fields import EpochMillisecondsField
from accounting.models.journal import JournalEntry, JournalEntryLine


# ------------------------------------------------------------
# Input
# ------------------------------------------------------------


class JournalLineInputSerializer(serializers.Serializer):
    account_id = serializers.IntegerField(required=False, allow_null=True)
    account_code = serializers.CharField(required=False, allow_blank=True, max_length=20)
    debit_amount = serializers.IntegerField(required=False, min_value=0, default=0)
    credit_amount = serializers.IntegerField(required=False, min_value=0, default=0)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
    branch_id = serializers.UUIDField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        if attrs.get("account_id") is None and not (attrs.get("account_code") or "").strip():
            raise serializers.ValidationError("account_id or account_code is required")
        return attrs


class JournalEntryCreateSerializer(serializers.Serializer):
    description = serializers.CharField()
    journal_date = EpochMillisecondsField(required=False, allow_null=True, default=None)
    branch_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    source_type = serializers.ChoiceField(
        choices=[c for c in JournalEntry.SOURCE_TYPES if c[0] not in JournalEntry.SYSTEM_SOURCE_TYPES],
        required=False,
        default=JournalEntry.SOURCE_MANUAL,
    )
    source_id = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")
    journal_number = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=32, default=None
    )
    lines = JournalLineInputSerializer(many=True)
    post = serializers.BooleanField(required=False, default=False)


class VoidEntrySerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


# ------------------------------------------------------------
# Output
# ------------------------------------------------------------


class JournalEntryLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalEntryLine
        fields = (
            "id",
            "account_id",
            "account_code",
            "account_name",
            "branch_id",
            "description",
            "debit_amount",
            "credit_amount",
            "sort_order",
        )
        read_only_fields = fields


class JournalEntryListSerializer(serializers.ModelSerializer):
    """
    Expects the queryset annotated with line_count / total_debit / total_credit.
    """

    journal_date = EpochMillisecondsField(read_only=True)
    posted_at = EpochMillisecondsField(read_only=True)
    voided_at = EpochMillisecondsField(read_only=True)
    line_count = serializers.IntegerField(read_only=True)
    total_debit = serializers.SerializerMethodField()
    total_credit = serializers.SerializerMethodField()

    class Meta:
        model = JournalEntry
        fields = (
            "id",
            "journal_number",
            "journal_date",
            "description",
            "source_type",
            "source_id",
            "status",
            "branch_id",
            "posted_at",
            "posted_by",
            "voided_at",
            "voided_by",
            "void_reason",
            "line_count",
            "total_debit",
            "total_credit",
        )
        read_only_fields = fields

    def get_total_debit(self, obj) -> int:
        return int(getattr(obj, "total_debit", None) or 0)

    def get_total_credit(self, obj) -> int:
        return int(getattr(obj, "total_credit", None) or 0)


class JournalEntrySerializer(serializers.ModelSerializer):
    journal_date = EpochMillisecondsField(read_only=True)
    posted_at = EpochMillisecondsField(read_only=True)
    voided_at = EpochMillisecondsField(read_only=True)
    created_at = EpochMillisecondsField(read_only=True)
    lines = JournalEntryLineSerializer(many=True, read_only=True)
    total_debit = serializers.SerializerMethodField()
    total_credit = serializers.SerializerMethodField()

    class Meta:
        model = JournalEntry
        fields = (
            "id",
            "journal_number",
            "journal_date",
            "description",
            "source_type",
            "source_id",
            "status",
            "branch_id",
            "posted_at",
            "posted_by",
            "voided_at",
            "voided_by",
            "void_reason",
            "created_by",
            "created_at",
            "lines",
            "total_debit",
            "total_credit",
        )
        read_only_fields = fields

    def get_total_debit(self, obj) -> int:
        return sum(line.debit_amount for line in obj.lines.all())

    def get_total_credit(self, obj) -> int:
        return sum(line.credit_amount for line in obj.lines.all())
