import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ledger.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from ledger.models import Notification, Wallet, WalletTransaction, WithdrawalRequest
from ledger.models.base import ZERO
from ledger.notifications import mask_account, notify_admins, notify_user
from ledger.permissions import PAYMENTS_ADMIN, has_capability
from ledger.services.hold import parse_uuid
from ledger.services.wallet import WalletService
from ledger.utils.money import money_sum, setting_money, to_money
from ledger.utils.pagination import ADMIN_MAX_PAGE_SIZE, MAX_PAGE_SIZE, paginate

logger = logging.getLogger(__name__)

APPROVE = "approve"
REJECT = "reject"


class WithdrawalService:
    """
    Payouts of referral earnings.

    Only money earned through referrals can leave the platform. The amount is
    debited as soon as the request is placed; an admin then approves the
    request (the transfer happens outside the system) or rejects it, which
    refunds the amount to the wallet.
    """

    @staticmethod
    def _summary(wallet: Wallet) -> dict:
        total_earned = WalletTransaction.objects.completed().filter(
            wallet=wallet,
            transaction_type=WalletTransaction.TransactionType.CREDIT,
            source=WalletTransaction.Source.REFERRAL_EARNINGS,
        ).aggregate(total=money_sum("amount"))["total"]
        total_withdrawn = WithdrawalRequest.objects.filter(
            wallet=wallet, status__in=WithdrawalRequest.OUTSTANDING_STATUSES
        ).aggregate(total=money_sum("amount"))["total"]

        available = wallet.balance - WalletService.active_hold_total(wallet)
        withdrawable = max(ZERO, min(total_earned - total_withdrawn, available))
        min_withdrawal = setting_money(getattr(settings, "WALLET_MIN_WITHDRAWAL", 200))

        return {
            "withdrawable_balance": withdrawable,
            "total_earned": total_earned,
            "total_withdrawn": total_withdrawn,
            "balance": wallet.balance,
            "available_balance": available,
            "min_withdrawal": min_withdrawal,
            "processing_fee": setting_money(getattr(settings, "WALLET_WITHDRAWAL_FEE", 0)),
            "can_withdraw": wallet.is_active and withdrawable >= min_withdrawal,
            "currency": wallet.currency,
        }

    @staticmethod
    def get_withdrawable_balance(user) -> dict:
        return WithdrawalService._summary(WalletService.get_or_create_wallet(user))

    @staticmethod
    @transaction.atomic
    def request_withdrawal(user, amount, payout_details: dict) -> WithdrawalRequest:
        """
        Place a withdrawal request and debit the wallet.

        payout_details needs either `upi_id` or both `bank_account_number`
        and `bank_ifsc`; `account_holder_name` is optional.

        Raises:
            ValidationError: bad payout details, wallet suspended, amount
                below the minimum or above the withdrawable balance.
            InsufficientBalanceError: amount above the available balance.
        """
        amount = to_money(amount)
        payout_details = payout_details or {}
        upi_id = (payout_details.get("upi_id") or "").strip()
        account_number = (payout_details.get("bank_account_number") or "").strip()
        ifsc = (payout_details.get("bank_ifsc") or "").strip().upper()
        holder = (payout_details.get("account_holder_name") or "").strip()
        if not upi_id and not (account_number and ifsc):
            raise ValidationError("Provide a UPI id or a bank account number with IFSC.")

        wallet = WalletService.lock_wallet(user)
        WalletService.ensure_active(wallet)

        summary = WithdrawalService._summary(wallet)
        if amount < summary["min_withdrawal"]:
            raise ValidationError(
                f"Minimum withdrawal amount is {summary['min_withdrawal']}."
            )
        if amount > summary["available_balance"]:
            raise InsufficientBalanceError(
                f"Insufficient balance. Available: {summary['available_balance']}, "
                f"required: {amount}"
            )
        if amount > summary["withdrawable_balance"]:
            logger.warning(
                "Withdrawal rejected (above withdrawable): wallet=%s withdrawable=%s amount=%s",
                wallet.uuid,
                summary["withdrawable_balance"],
                amount,
            )
            raise ValidationError(
                f"Only referral earnings can be withdrawn. "
                f"Withdrawable balance: {summary['withdrawable_balance']}."
            )

        fee = min(summary["processing_fee"], amount)
        withdrawal = WithdrawalRequest.objects.create(
            wallet=wallet,
            user=user,
            amount=amount,
            processing_fee=fee,
            net_amount=amount - fee,
            upi_id=upi_id,
            bank_account_number=account_number,
            bank_ifsc=ifsc,
            account_holder_name=holder,
        )
        tx = WalletService.post_entry(
            wallet,
            WalletTransaction.TransactionType.DEBIT,
            amount,
            WalletTransaction.Source.WITHDRAWAL,
            description=f"Withdrawal request {withdrawal.uuid}",
            payment_reference=str(withdrawal.uuid),
            idempotency_key=f"withdrawal:{withdrawal.uuid}",
        )

        logger.info(
            "Withdrawal requested: wallet=%s withdrawal=%s amount=%s new_balance=%s tx=%s",
            wallet.uuid,
            withdrawal.uuid,
            amount,
            wallet.balance,
            tx.uuid,
        )

        payout = (
            f"UPI {mask_account(upi_id)}"
            if upi_id
            else f"Bank account {mask_account(account_number)} (IFSC {ifsc})"
        )
        notify_user(
            user,
            Notification.Type.WITHDRAWAL_REQUESTED,
            "Withdrawal requested",
            f"Your withdrawal of {amount} {wallet.currency} is being processed.",
            {"withdrawal_id": str(withdrawal.uuid), "amount": amount},
        )
        notify_admins(
            f"New withdrawal request: {amount} {wallet.currency}",
            (
                f"User: {user.get_username()} (id {user.pk})\n"
                f"Withdrawal: {withdrawal.uuid}\n"
                f"Amount: {amount} {wallet.currency}\n"
                f"Net payout: {withdrawal.net_amount} {wallet.currency}\n"
                f"Payout to: {payout}\n"
            ),
        )
        return withdrawal

    @staticmethod
    def get_withdrawal_history(user, page=1, page_size=20) -> dict:
        result = paginate(
            WithdrawalRequest.objects.filter(user=user),
            page,
            page_size,
            max_page_size=MAX_PAGE_SIZE,
        )
        result["withdrawals"] = result.pop("items")
        return result

    @staticmethod
    def list_withdrawals(status=None, page=1, page_size=20) -> dict:
        queryset = WithdrawalRequest.objects.select_related("user")
        if status:
            status = str(status).upper()
            if status not in WithdrawalRequest.Status.values:
                raise ValidationError("Unknown withdrawal status.")
            queryset = queryset.filter(status=status)
        result = paginate(queryset, page, page_size, max_page_size=ADMIN_MAX_PAGE_SIZE)
        result["withdrawals"] = result.pop("items")
        return result

    @staticmethod
    @transaction.atomic
    def process_withdrawal(
        withdrawal_uuid,
        action: str,
        admin,
        payment_reference: str = None,
        rejection_reason: str = None,
    ) -> WithdrawalRequest:
        """
        Approve or reject a PENDING withdrawal.

        Approving marks it COMPLETED. Rejecting marks it REJECTED and refunds
        the amount with a REFUND credit.
        """
        if not has_capability(admin, PAYMENTS_ADMIN):
            raise AuthorizationError("Only payment admins can process withdrawals.")
        action = (action or "").lower()
        if action not in (APPROVE, REJECT):
            raise ValidationError("Action must be 'approve' or 'reject'.")

        withdrawal_uuid = parse_uuid(withdrawal_uuid, "withdrawal id")
        withdrawal = WithdrawalRequest.objects.filter(uuid=withdrawal_uuid).first()
        if withdrawal is None:
            raise NotFoundError("Withdrawal request not found.")

        wallet = Wallet.objects.select_for_update().get(pk=withdrawal.wallet_id)
        withdrawal = WithdrawalRequest.objects.select_for_update().get(pk=withdrawal.pk)
        if withdrawal.status != WithdrawalRequest.Status.PENDING:
            raise ValidationError(f"Withdrawal is already {withdrawal.status.lower()}.")

        withdrawal.processed_at = timezone.now()
        withdrawal.processed_by = admin

        if action == APPROVE:
            withdrawal.status = WithdrawalRequest.Status.COMPLETED
            withdrawal.payment_reference = (payment_reference or "")[:100]
            notification = (
                Notification.Type.WITHDRAWAL_APPROVED,
                "Withdrawal completed",
                f"{withdrawal.net_amount} {wallet.currency} has been sent to your account.",
            )
        else:
            withdrawal.status = WithdrawalRequest.Status.REJECTED
            withdrawal.rejection_reason = (rejection_reason or "Rejected by admin")[:500]
            WalletService.post_entry(
                wallet,
                WalletTransaction.TransactionType.CREDIT,
                withdrawal.amount,
                WalletTransaction.Source.REFUND,
                description=f"Refund for rejected withdrawal {withdrawal.uuid}",
                payment_reference=str(withdrawal.uuid),
                idempotency_key=f"withdrawal-refund:{withdrawal.uuid}",
            )
            notification = (
                Notification.Type.WITHDRAWAL_REJECTED,
                "Withdrawal rejected",
                f"Your withdrawal of {withdrawal.amount} {wallet.currency} was rejected "
                f"and refunded to your wallet. Reason: {withdrawal.rejection_reason}",
            )

        withdrawal.save(
            update_fields=[
                "status",
                "processed_at",
                "processed_by",
                "payment_reference",
                "rejection_reason",
                "updated_at",
            ]
        )

        logger.info(
            "Withdrawal %s: withdrawal=%s amount=%s admin=%s",
            withdrawal.status.lower(),
            withdrawal.uuid,
            withdrawal.amount,
            admin.pk,
        )
        notify_user(
            withdrawal.user,
            *notification,
            {"withdrawal_id": str(withdrawal.uuid), "amount": withdrawal.amount},
        )
        return withdrawal
