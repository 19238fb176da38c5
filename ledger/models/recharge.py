import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from ledger.models.base import ZERO, BaseModel, money_field
from ledger.models.promo import BonusPack
from ledger.models.wallet import Wallet


class RechargeOrder(BaseModel):
    """
    A wallet top-up tied to a payment gateway order.

    The order is PENDING until the gateway's payment confirmation is verified,
    at which point the wallet is credited once and the order becomes PAID.
    `gateway_payment_id` is unique so a single payment can never pay for two
    orders.
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PAID = "PAID", "Paid"
        FAILED = "FAILED", "Failed"
        EXPIRED = "EXPIRED", "Expired"

    uuid = models.UUIDField(
        default=uuid.uuid4, unique=True, editable=False, db_index=True
    )
    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="recharge_orders",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="recharge_orders",
    )
    amount = money_field()
    currency = models.CharField(max_length=3, default="INR")
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_gateway = models.CharField(max_length=20, default="razorpay")
    gateway_order_id = models.CharField(max_length=100, unique=True)
    gateway_payment_id = models.CharField(
        max_length=100, unique=True, null=True, blank=True
    )
    gateway_signature = models.CharField(max_length=256, blank=True, default="")
    receipt = models.CharField(max_length=40)
    bonus_pack = models.ForeignKey(
        BonusPack,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recharge_orders",
    )
    promo_code = models.CharField(max_length=50, blank=True, default="")
    bonus_credited = money_field(default=ZERO)
    expires_at = models.DateTimeField()
    paid_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True, default="")

    class Meta(BaseModel.Meta):
        indexes = [
            models.Index(fields=["status", "expires_at"], name="idx_recharge_status_expiry"),
            models.Index(fields=["user", "created_at"], name="idx_recharge_user_created"),
        ]

    def __str__(self):
        return f"RechargeOrder {self.gateway_order_id} | {self.amount} | {self.status}"

    @property
    def is_expired(self):
        return self.expires_at <= timezone.now()
