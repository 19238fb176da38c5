from decimal import Decimal

from rest_framework import serializers

from ledger.models import WalletTransaction

# Sources a client may debit directly; hold settlements, fees and withdrawals
# are recorded only by their own operations.
CLIENT_DEBIT_SOURCES = (
    WalletTransaction.Source.SERVICE_PURCHASE,
    WalletTransaction.Source.POINTS_CONVERSION,
)


class DebitSerializer(serializers.Serializer):
    """Validates direct wallet debit requests."""

    amount = serializers.DecimalField(
        max_digits=15, decimal_places=2, min_value=Decimal("0.01")
    )
    source = serializers.ChoiceField(
        choices=CLIENT_DEBIT_SOURCES,
        default=WalletTransaction.Source.SERVICE_PURCHASE,
    )
    description = serializers.CharField(max_length=500)
    payment_reference = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
