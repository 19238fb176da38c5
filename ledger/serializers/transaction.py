from rest_framework import serializers

from ledger.models import WalletTransaction


class TransactionSerializer(serializers.ModelSerializer):
    """Read-only serializer for ledger entries."""

    wallet_uuid = serializers.UUIDField(source="wallet.uuid", read_only=True)

    class Meta:
        model = WalletTransaction
        fields = (
            "uuid",
            "wallet_uuid",
            "transaction_type",
            "amount",
            "balance_before",
            "balance_after",
            "source",
            "payment_reference",
            "description",
            "status",
            "created_at",
        )
        read_only_fields = fields
