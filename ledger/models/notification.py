from django.conf import settings
from django.db import models

from ledger.models.base import BaseModel


class Notification(BaseModel):
    """In-app notification created after a wallet event commits."""

    class Type(models.TextChoices):
        WALLET_CREDITED = "WALLET_CREDITED", "Wallet credited"
        WALLET_DEBITED = "WALLET_DEBITED", "Wallet debited"
        HOLD_CONVERTED = "HOLD_CONVERTED", "Hold converted"
        HOLD_RELEASED = "HOLD_RELEASED", "Hold released"
        WITHDRAWAL_REQUESTED = "WITHDRAWAL_REQUESTED", "Withdrawal requested"
        WITHDRAWAL_APPROVED = "WITHDRAWAL_APPROVED", "Withdrawal approved"
        WITHDRAWAL_REJECTED = "WITHDRAWAL_REJECTED", "Withdrawal rejected"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wallet_notifications",
    )
    notification_type = models.CharField(max_length=30, choices=Type.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.notification_type} for {self.user_id}"
