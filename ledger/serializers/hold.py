from rest_framework import serializers

from ledger.models import WalletHold


class HoldSerializer(serializers.ModelSerializer):
    settlement_uuid = serializers.SerializerMethodField()

    class Meta:
        model = WalletHold
        fields = (
            "uuid",
            "referral_request_id",
            "amount",
            "status",
            "description",
            "converted_at",
            "released_at",
            "settlement_uuid",
            "created_at",
        )
        read_only_fields = fields

    def get_settlement_uuid(self, obj):
        return str(obj.settlement.uuid) if obj.settlement_id else None
