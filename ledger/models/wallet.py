import uuid

from django.conf import settings
from django.db import models

from ledger.models.base import ZERO, BaseModel, money_field


class Wallet(BaseModel):
    """
    A user's wallet. Exactly one per user, created lazily on first access.

    The balance is stored in currency units with two decimal places and can
    never go negative (enforced by a check constraint). Concurrency safety is
    handled at the service layer via select_for_update() on this row.
    """

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        SUSPENDED = "SUSPENDED", "Suspended"

    uuid = models.UUIDField(
        default=uuid.uuid4, unique=True, editable=False, db_index=True
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wallet",
    )
    balance = money_field(default=ZERO)
    currency = models.CharField(max_length=3, default="INR")
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    last_transaction_at = models.DateTimeField(null=True, blank=True)

    class Meta(BaseModel.Meta):
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name="wallet_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"Wallet {self.uuid} (balance={self.balance} {self.currency})"

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE
