import re

from rest_framework import serializers

from ledger.models import WithdrawalRequest
from ledger.notifications import mask_account

UPI_PATTERN = re.compile(r"^[\w.\-]{2,256}@[A-Za-z]{2,64}$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")


class WithdrawSerializer(serializers.Serializer):
    """Validates withdrawal requests: a UPI id or bank account + IFSC."""

    amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=1)
    upi_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    bank_account_number = serializers.CharField(
        max_length=34, required=False, allow_blank=True
    )
    bank_ifsc = serializers.CharField(max_length=11, required=False, allow_blank=True)
    account_holder_name = serializers.CharField(
        max_length=150, required=False, allow_blank=True
    )

    def validate_upi_id(self, value):
        value = value.strip()
        if value and not UPI_PATTERN.match(value):
            raise serializers.ValidationError("Enter a valid UPI id.")
        return value

    def validate_bank_ifsc(self, value):
        value = value.strip().upper()
        if value and not IFSC_PATTERN.match(value):
            raise serializers.ValidationError("Enter a valid IFSC code.")
        return value

    def validate_bank_account_number(self, value):
        value = value.strip()
        if value and not value.isdigit():
            raise serializers.ValidationError("Account number must contain digits only.")
        return value

    def validate(self, attrs):
        has_upi = bool(attrs.get("upi_id"))
        has_bank = bool(attrs.get("bank_account_number")) and bool(attrs.get("bank_ifsc"))
        if not has_upi and not has_bank:
            raise serializers.ValidationError(
                "Provide a UPI id or a bank account number with IFSC."
            )
        return attrs


class WithdrawalSerializer(serializers.ModelSerializer):
    """Withdrawal as shown to its owner; payout details are masked."""

    upi_id = serializers.SerializerMethodField()
    bank_account_number = serializers.SerializerMethodField()

    class Meta:
        model = WithdrawalRequest
        fields = (
            "uuid",
            "amount",
            "processing_fee",
            "net_amount",
            "upi_id",
            "bank_account_number",
            "bank_ifsc",
            "account_holder_name",
            "status",
            "payment_reference",
            "rejection_reason",
            "processed_at",
            "created_at",
        )
        read_only_fields = fields

    def get_upi_id(self, obj):
        return mask_account(obj.upi_id) if obj.upi_id else ""

    def get_bank_account_number(self, obj):
        return mask_account(obj.bank_account_number) if obj.bank_account_number else ""


class AdminWithdrawalSerializer(serializers.ModelSerializer):
    """Full payout details for the admins who make the transfer."""

    user_id = serializers.IntegerField(source="user.pk", read_only=True)
    username = serializers.CharField(source="user.get_username", read_only=True)

    class Meta:
        model = WithdrawalRequest
        fields = (
            "uuid",
            "user_id",
            "username",
            "amount",
            "processing_fee",
            "net_amount",
            "upi_id",
            "bank_account_number",
            "bank_ifsc",
            "account_holder_name",
            "status",
            "payment_reference",
            "rejection_reason",
            "processed_at",
            "created_at",
        )
        read_only_fields = fields


class ProcessWithdrawalSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=("approve", "reject"))
    payment_reference = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
    rejection_reason = serializers.CharField(
        max_length=500, required=False, allow_blank=True
    )

    def validate(self, attrs):
        if attrs["action"] == "reject" and not attrs.get("rejection_reason"):
            raise serializers.ValidationError("A rejection reason is required.")
        return attrs
