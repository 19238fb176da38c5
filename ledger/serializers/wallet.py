from rest_framework import serializers

from ledger.models import Wallet


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = (
            "uuid",
            "balance",
            "currency",
            "status",
            "last_transaction_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class AvailableBalanceSerializer(serializers.Serializer):
    """Balance, the ACTIVE hold total and what remains spendable."""

    balance = serializers.DecimalField(max_digits=15, decimal_places=2)
    hold_amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    available_balance = serializers.DecimalField(max_digits=15, decimal_places=2)
    currency = serializers.CharField()


class WalletStatsSerializer(serializers.Serializer):
    balance = serializers.DecimalField(max_digits=15, decimal_places=2)
    currency = serializers.CharField()
    total_credited = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_debited = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_recharged = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_earned = serializers.DecimalField(max_digits=15, decimal_places=2)
    total_spent_on_referrals = serializers.DecimalField(max_digits=15, decimal_places=2)
    transaction_count = serializers.IntegerField()
    last_credit_at = serializers.DateTimeField(allow_null=True)
    last_debit_at = serializers.DateTimeField(allow_null=True)
