# accounting/api/serializers/accounts.py

from rest_framework import serializers

from accounting.models.account import Account


class AccountSerializer(serializers.ModelSerializer):
    """
    Read-only account representation.
    child_count is present when the queryset was annotated with it.
    """

    parent_id = serializers.IntegerField(read_only=True, allow_null=True)
    child_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Account
        fields = (
            "id",
            "code",
            "name",
            "account_type",
            "category",
            "normal_balance",
            "is_header",
            "parent_id",
            "level",
            "description",
            "is_active",
            "child_count",
        )
        read_only_fields = fields


class AccountCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=150)
    account_type = serializers.ChoiceField(choices=Account.ACCOUNT_TYPES)
    category = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    parent_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    normal_balance = serializers.ChoiceField(
        choices=Account.NORMAL_BALANCES,
        required=False,
        allow_null=True,
        default=None,
    )
    is_header = serializers.BooleanField(required=False, default=False)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    is_active = serializers.BooleanField(required=False, default=True)


class AccountUpdateSerializer(serializers.Serializer):
    """
    Partial update. Omitted fields are left untouched; parent_id=null moves
    the account to the top level.
    """

    name = serializers.CharField(max_length=150, required=False)
    category = serializers.CharField(max_length=50, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    parent_id = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide at least one field to update.")
        return attrs
