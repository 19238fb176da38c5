import uuid

from django.db import models

from ledger.exceptions import ImmutableLedgerError
from ledger.models.base import BaseModel, money_field
from ledger.models.wallet import Wallet


class LedgerQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableLedgerError()

    def delete(self):
        raise ImmutableLedgerError()

    def completed(self):
        return self.filter(status=WalletTransaction.Status.COMPLETED)


class WalletTransaction(BaseModel):
    """
    Append-only ledger entry for a wallet.

    Entries are never updated or deleted. The sum of signed COMPLETED amounts
    for a wallet equals its stored balance; balance_before / balance_after
    snapshot the wallet around each entry. FAILED entries record rejected
    payment verifications and never move money.
    """

    class TransactionType(models.TextChoices):
        CREDIT = "CREDIT", "Credit"
        DEBIT = "DEBIT", "Debit"

    class Source(models.TextChoices):
        RECHARGE = "RECHARGE", "Recharge"
        RECHARGE_BONUS = "RECHARGE_BONUS", "Recharge bonus"
        REFERRAL_EARNINGS = "REFERRAL_EARNINGS", "Referral earnings"
        REFERRAL_REQUEST = "REFERRAL_REQUEST", "Referral request"
        CANCELLATION_FEE = "CANCELLATION_FEE", "Cancellation fee"
        WITHDRAWAL = "WITHDRAWAL", "Withdrawal"
        REFUND = "REFUND", "Refund"
        NEW_USER_BONUS = "NEW_USER_BONUS", "New user bonus"
        REFERRAL_BONUS = "REFERRAL_BONUS", "Referral bonus"
        ADMIN_BONUS = "ADMIN_BONUS", "Admin bonus"
        POINTS_CONVERSION = "POINTS_CONVERSION", "Points conversion"
        SERVICE_PURCHASE = "SERVICE_PURCHASE", "Service purchase"

    class Status(models.TextChoices):
        COMPLETED = "COMPLETED", "Completed"
        FAILED = "FAILED", "Failed"

    uuid = models.UUIDField(
        default=uuid.uuid4, unique=True, editable=False, db_index=True
    )
    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    transaction_type = models.CharField(
        max_length=10,
        choices=TransactionType.choices,
    )
    amount = money_field()
    balance_before = money_field()
    balance_after = money_field()
    source = models.CharField(max_length=30, choices=Source.choices)
    payment_reference = models.CharField(max_length=100, null=True, blank=True)
    description = models.CharField(max_length=500, blank=True, default="")
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.COMPLETED,
    )
    idempotency_key = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        editable=False,
        help_text="Operation key (e.g. gateway payment id) that may credit or debit once.",
    )

    objects = LedgerQuerySet.as_manager()

    class Meta(BaseModel.Meta):
        indexes = [
            models.Index(fields=["wallet", "created_at"], name="idx_tx_wallet_created"),
            models.Index(fields=["wallet", "transaction_type"], name="idx_tx_wallet_type"),
            models.Index(fields=["wallet", "source"], name="idx_tx_wallet_source"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="wallet_transaction_amount_positive",
            ),
        ]

    def __str__(self):
        return (
            f"Transaction {self.uuid} | {self.transaction_type} | "
            f"{self.amount} | {self.source} | {self.status}"
        )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableLedgerError()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableLedgerError()

    @property
    def signed_amount(self):
        if self.transaction_type == self.TransactionType.DEBIT:
            return -self.amount
        return self.amount
