import uuid

from django.db import models

from ledger.models.base import BaseModel, money_field
from ledger.models.wallet import Wallet


class WalletHold(BaseModel):
    """
    Funds provisionally reserved against a wallet for a referral request.

    ACTIVE holds reduce the available balance without touching the balance.
    A hold ends either CONVERTED (the amount is debited and the debit entry is
    linked as `settlement`) or RELEASED (nothing is debited). Both are terminal.
    """

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        CONVERTED = "CONVERTED", "Converted"
        RELEASED = "RELEASED", "Released"

    uuid = models.UUIDField(
        default=uuid.uuid4, unique=True, editable=False, db_index=True
    )
    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="holds",
    )
    referral_request_id = models.UUIDField(
        unique=True,
        help_text="Referral request this hold pays for. One hold per request.",
    )
    amount = money_field()
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    description = models.CharField(max_length=500, blank=True, default="")
    converted_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    settlement = models.OneToOneField(
        "ledger.WalletTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="settled_hold",
    )

    class Meta(BaseModel.Meta):
        indexes = [
            models.Index(fields=["wallet", "status"], name="idx_hold_wallet_status"),
            models.Index(fields=["status", "created_at"], name="idx_hold_status_created"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="wallet_hold_amount_positive",
            ),
        ]

    def __str__(self):
        return f"Hold {self.uuid} | {self.amount} | {self.status}"

    @property
    def is_terminal(self):
        return self.status != self.Status.ACTIVE
