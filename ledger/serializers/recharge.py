from django.conf import settings
from rest_framework import serializers

from ledger.models import BonusPack, RechargeOrder


class BonusPackSerializer(serializers.ModelSerializer):
    total_credit = serializers.SerializerMethodField()

    class Meta:
        model = BonusPack
        fields = ("id", "name", "pay_amount", "bonus_amount", "total_credit", "badge")
        read_only_fields = fields

    def get_total_credit(self, obj):
        return obj.pay_amount + obj.bonus_amount


class RechargeOrderSerializer(serializers.ModelSerializer):
    """
    A recharge order as returned to the client.

    `razorpay_order_id`, `amount_paise` and `key_id` are what the Razorpay
    checkout needs to open the payment sheet.
    """

    razorpay_order_id = serializers.CharField(source="gateway_order_id", read_only=True)
    amount_paise = serializers.SerializerMethodField()
    key_id = serializers.SerializerMethodField()
    bonus_pack = BonusPackSerializer(read_only=True)

    class Meta:
        model = RechargeOrder
        fields = (
            "uuid",
            "razorpay_order_id",
            "amount",
            "amount_paise",
            "currency",
            "status",
            "receipt",
            "bonus_pack",
            "promo_code",
            "bonus_credited",
            "key_id",
            "expires_at",
            "paid_at",
            "created_at",
        )
        read_only_fields = fields

    def get_amount_paise(self, obj):
        return int(obj.amount * 100)

    def get_key_id(self, obj):
        return getattr(settings, "RAZORPAY_KEY_ID", "")


class CreateRechargeOrderSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=1)
    pack_id = serializers.IntegerField(required=False, allow_null=True)
    promo_code = serializers.CharField(
        max_length=50, required=False, allow_blank=True, allow_null=True
    )

    def validate_amount(self, value):
        max_amount = getattr(settings, "WALLET_MAX_RECHARGE_AMOUNT", 100000)
        if value > max_amount:
            raise serializers.ValidationError(f"Maximum recharge amount is {max_amount}.")
        return value


class VerifyRechargeSerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField(max_length=100)
    razorpay_payment_id = serializers.CharField(max_length=100)
    razorpay_signature = serializers.CharField(max_length=256)
