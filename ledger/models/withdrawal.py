import uuid

from django.conf import settings
from django.db import models

from ledger.models.base import ZERO, BaseModel, money_field
from ledger.models.wallet import Wallet


class WithdrawalRequest(BaseModel):
    """
    A payout of referral earnings to a UPI id or bank account.

    The amount is debited from the wallet when the request is placed. An admin
    then approves it (COMPLETED, money sent outside the system) or rejects it
    (REJECTED, the amount is refunded to the wallet).
    """

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PROCESSING = "PROCESSING", "Processing"
        COMPLETED = "COMPLETED", "Completed"
        REJECTED = "REJECTED", "Rejected"

    # Statuses whose amount counts as already withdrawn.
    OUTSTANDING_STATUSES = (Status.PENDING, Status.PROCESSING, Status.COMPLETED)

    uuid = models.UUIDField(
        default=uuid.uuid4, unique=True, editable=False, db_index=True
    )
    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="withdrawals",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="withdrawals",
    )
    amount = money_field()
    processing_fee = money_field(default=ZERO)
    net_amount = money_field()
    upi_id = models.CharField(max_length=100, blank=True, default="")
    bank_account_number = models.CharField(max_length=34, blank=True, default="")
    bank_ifsc = models.CharField(max_length=11, blank=True, default="")
    account_holder_name = models.CharField(max_length=150, blank=True, default="")
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_withdrawals",
    )
    payment_reference = models.CharField(max_length=100, blank=True, default="")
    rejection_reason = models.CharField(max_length=500, blank=True, default="")

    class Meta(BaseModel.Meta):
        indexes = [
            models.Index(fields=["user", "status"], name="idx_withdrawal_user_status"),
            models.Index(fields=["status", "created_at"], name="idx_withdrawal_status_created"),
        ]

    def __str__(self):
        return f"Withdrawal {self.uuid} | {self.amount} | {self.status}"
