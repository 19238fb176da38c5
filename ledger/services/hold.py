import logging
import uuid
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from ledger.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InvalidHoldStateError,
    NotFoundError,
    ValidationError,
)
from ledger.models import Notification, Wallet, WalletHold, WalletTransaction
from ledger.notifications import notify_user
from ledger.services.wallet import WalletService
from ledger.utils.money import to_money

logger = logging.getLogger(__name__)


def parse_uuid(value, label="referral request id") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"Invalid {label}.")


class HoldService:
    """
    Lifecycle of wallet holds: ACTIVE -> CONVERTED | RELEASED.

    A hold reserves part of the balance for one referral request. Converting
    it debits the wallet (the settlement); releasing it frees the reservation
    without recording any transaction. Both end states are terminal.

    Every transition locks the wallet first and then the hold, the same order
    used by create_hold and the ledger, so concurrent operations on one
    wallet are serialized.
    """

    @staticmethod
    @transaction.atomic
    def create_hold(user, amount, referral_request_id, description: str = "") -> WalletHold:
        """
        Reserve `amount` of the user's available balance.

        Raises:
            ValidationError: amount not positive, wallet suspended, or a hold
                already exists for the referral request.
            InsufficientBalanceError: available balance below amount.
        """
        amount = to_money(amount)
        referral_request_id = parse_uuid(referral_request_id)

        wallet = WalletService.lock_wallet(user)
        WalletService.ensure_active(wallet)

        if WalletHold.objects.filter(referral_request_id=referral_request_id).exists():
            raise ValidationError("A hold already exists for this referral request.")

        available = wallet.balance - WalletService.active_hold_total(wallet)
        if available < amount:
            logger.warning(
                "Hold rejected (insufficient balance): wallet=%s available=%s amount=%s request=%s",
                wallet.uuid,
                available,
                amount,
                referral_request_id,
            )
            raise InsufficientBalanceError(
                f"Insufficient balance. Available: {available}, required: {amount}"
            )

        try:
            with transaction.atomic():
                hold = WalletHold.objects.create(
                    wallet=wallet,
                    referral_request_id=referral_request_id,
                    amount=amount,
                    description=description[:500],
                )
        except IntegrityError:
            # Another wallet claimed the same referral request concurrently.
            raise ValidationError("A hold already exists for this referral request.")

        logger.info(
            "Hold created: wallet=%s hold=%s amount=%s request=%s",
            wallet.uuid,
            hold.uuid,
            amount,
            referral_request_id,
        )
        return hold

    @staticmethod
    def _lock_active_hold(referral_request_id, user=None):
        """Lock the hold's wallet, then the hold, and check it is still ACTIVE."""
        referral_request_id = parse_uuid(referral_request_id)
        hold = (
            WalletHold.objects.select_related("wallet")
            .filter(referral_request_id=referral_request_id)
            .first()
        )
        if hold is None:
            raise NotFoundError("Hold not found for this referral request.")
        if user is not None and hold.wallet.user_id != user.pk:
            logger.warning(
                "Hold access denied: hold=%s owner=%s user=%s",
                hold.uuid,
                hold.wallet.user_id,
                user.pk,
            )
            raise AuthorizationError("This hold does not belong to you.")

        wallet = Wallet.objects.select_for_update().get(pk=hold.wallet_id)
        hold = WalletHold.objects.select_for_update().get(pk=hold.pk)
        if hold.status != WalletHold.Status.ACTIVE:
            raise InvalidHoldStateError(f"Hold is already {hold.status.lower()}.")
        return wallet, hold

    @staticmethod
    @transaction.atomic
    def convert_hold(referral_request_id, user=None) -> WalletHold:
        """Settle the hold: debit its amount and mark it CONVERTED."""
        wallet, hold = HoldService._lock_active_hold(referral_request_id, user)

        tx = WalletService.post_entry(
            wallet,
            WalletTransaction.TransactionType.DEBIT,
            hold.amount,
            WalletTransaction.Source.REFERRAL_REQUEST,
            description=hold.description or f"Referral request {hold.referral_request_id}",
            payment_reference=str(hold.referral_request_id),
            idempotency_key=f"hold-settlement:{hold.uuid}",
        )

        hold.status = WalletHold.Status.CONVERTED
        hold.converted_at = timezone.now()
        hold.settlement = tx
        hold.save(update_fields=["status", "converted_at", "settlement", "updated_at"])

        logger.info(
            "Hold converted: wallet=%s hold=%s amount=%s new_balance=%s tx=%s",
            wallet.uuid,
            hold.uuid,
            hold.amount,
            wallet.balance,
            tx.uuid,
        )
        notify_user(
            wallet.user,
            Notification.Type.HOLD_CONVERTED,
            "Referral payment completed",
            f"{hold.amount} {wallet.currency} was paid for your referral request.",
            {
                "referral_request_id": str(hold.referral_request_id),
                "amount": hold.amount,
                "transaction_id": str(tx.uuid),
            },
        )
        return hold

    @staticmethod
    def _release(wallet, hold, reason):
        hold.status = WalletHold.Status.RELEASED
        hold.released_at = timezone.now()
        hold.save(update_fields=["status", "released_at", "updated_at"])
        logger.info(
            "Hold released: wallet=%s hold=%s amount=%s reason=%s",
            wallet.uuid,
            hold.uuid,
            hold.amount,
            reason,
        )

    @staticmethod
    @transaction.atomic
    def release_hold(referral_request_id, user=None, reason: str = "cancelled") -> WalletHold:
        """Cancel the reservation. No transaction is recorded."""
        wallet, hold = HoldService._lock_active_hold(referral_request_id, user)
        HoldService._release(wallet, hold, reason)
        notify_user(
            wallet.user,
            Notification.Type.HOLD_RELEASED,
            "Funds released",
            f"{hold.amount} {wallet.currency} reserved for a referral request is available again.",
            {
                "referral_request_id": str(hold.referral_request_id),
                "amount": hold.amount,
                "reason": reason,
            },
        )
        return hold

    @staticmethod
    @transaction.atomic
    def release_hold_with_deduction(referral_request_id, fee, user=None):
        """
        Release the hold and charge a cancellation fee.

        The fee is capped at the hold amount. Returns (hold, fee_transaction);
        fee_transaction is None for a zero fee.
        """
        fee = to_money(fee, allow_zero=True)
        wallet, hold = HoldService._lock_active_hold(referral_request_id, user)
        fee = min(fee, hold.amount)

        HoldService._release(wallet, hold, "cancelled with fee")

        fee_tx = None
        if fee > 0:
            fee_tx = WalletService.post_entry(
                wallet,
                WalletTransaction.TransactionType.DEBIT,
                fee,
                WalletTransaction.Source.CANCELLATION_FEE,
                description=f"Cancellation fee for referral request {hold.referral_request_id}",
                payment_reference=str(hold.referral_request_id),
                idempotency_key=f"hold-cancellation:{hold.uuid}",
            )
            logger.info(
                "Cancellation fee charged: wallet=%s hold=%s fee=%s tx=%s",
                wallet.uuid,
                hold.uuid,
                fee,
                fee_tx.uuid,
            )

        notify_user(
            wallet.user,
            Notification.Type.HOLD_RELEASED,
            "Referral request cancelled",
            f"{hold.amount - fee} {wallet.currency} returned to your available balance"
            f" after a {fee} {wallet.currency} cancellation fee.",
            {
                "referral_request_id": str(hold.referral_request_id),
                "amount": hold.amount,
                "fee": fee,
            },
        )
        return hold, fee_tx

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    @staticmethod
    def get_user_holds(user, status=None):
        wallet = WalletService.get_or_create_wallet(user)
        holds = WalletHold.objects.filter(wallet=wallet)
        if status:
            status = str(status).upper()
            if status not in WalletHold.Status.values:
                raise ValidationError("Unknown hold status.")
            holds = holds.filter(status=status)
        return holds

    @staticmethod
    def get_hold_by_request_id(referral_request_id):
        return WalletHold.objects.filter(
            referral_request_id=parse_uuid(referral_request_id)
        ).first()

    @staticmethod
    def find_stale_holds(days_old: int, batch_size: int = 100):
        """ACTIVE holds created more than `days_old` days ago, oldest first."""
        cutoff = timezone.now() - timedelta(days=days_old)
        return list(
            WalletHold.objects.filter(
                status=WalletHold.Status.ACTIVE, created_at__lt=cutoff
            ).order_by("created_at", "id")[:batch_size]
        )
