import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Max, Q
from django.utils import timezone

from ledger.exceptions import InsufficientBalanceError, ValidationError
from ledger.models import Notification, Wallet, WalletHold, WalletTransaction
from ledger.models.base import ZERO
from ledger.notifications import notify_user
from ledger.utils.money import money_sum, setting_money, to_money
from ledger.utils.pagination import MAX_PAGE_SIZE, paginate

logger = logging.getLogger(__name__)

Source = WalletTransaction.Source
TransactionType = WalletTransaction.TransactionType


class WalletService:
    """
    Wallet access, balances and the append-only transaction ledger.

    Every balance change goes through `post_entry` while the wallet row is
    locked with select_for_update(), so the stored balance and the sum of
    COMPLETED ledger entries move together inside one database transaction.
    """

    # ------------------------------------------------------------------ #
    # Wallet access
    # ------------------------------------------------------------------ #

    @staticmethod
    def get_or_create_wallet(user) -> Wallet:
        wallet, created = Wallet.objects.get_or_create(
            user=user,
            defaults={
                "currency": getattr(settings, "WALLET_DEFAULT_CURRENCY", "INR"),
            },
        )
        if created:
            logger.info("Wallet created: user=%s wallet=%s", user.pk, wallet.uuid)
        return wallet

    @staticmethod
    def lock_wallet(user) -> Wallet:
        """
        Return the user's wallet re-read under a row lock.

        Must be called inside transaction.atomic; the lock is held until the
        surrounding transaction ends.
        """
        wallet = WalletService.get_or_create_wallet(user)
        return Wallet.objects.select_for_update().get(pk=wallet.pk)

    @staticmethod
    def ensure_active(wallet: Wallet):
        if not wallet.is_active:
            logger.warning("Operation rejected on suspended wallet=%s", wallet.uuid)
            raise ValidationError("Wallet is suspended.")

    # ------------------------------------------------------------------ #
    # Balances
    # ------------------------------------------------------------------ #

    @staticmethod
    def active_hold_total(wallet: Wallet):
        return WalletHold.objects.filter(
            wallet=wallet, status=WalletHold.Status.ACTIVE
        ).aggregate(total=money_sum("amount"))["total"]

    @staticmethod
    def get_balance(user) -> dict:
        wallet = WalletService.get_or_create_wallet(user)
        return {"balance": wallet.balance, "currency": wallet.currency}

    @staticmethod
    def get_available_balance(user) -> dict:
        """
        Balance, the sum of ACTIVE holds and what is left to spend.

        Balance and hold total are read in a single query so they describe
        the same committed state. The result is not clamped at zero.
        """
        wallet = WalletService.get_or_create_wallet(user)
        row = (
            Wallet.objects.filter(pk=wallet.pk)
            .annotate(
                hold_amount=money_sum(
                    "holds__amount",
                    filter=Q(holds__status=WalletHold.Status.ACTIVE),
                )
            )
            .values("balance", "hold_amount", "currency")
            .get()
        )
        available = row["balance"] - row["hold_amount"]
        if available < 0:
            logger.error(
                "Active holds exceed balance: wallet=%s balance=%s holds=%s",
                wallet.uuid,
                row["balance"],
                row["hold_amount"],
            )
        return {
            "balance": row["balance"],
            "hold_amount": row["hold_amount"],
            "available_balance": available,
            "currency": row["currency"],
        }

    # ------------------------------------------------------------------ #
    # Ledger
    # ------------------------------------------------------------------ #

    @staticmethod
    def post_entry(
        wallet: Wallet,
        transaction_type: str,
        amount,
        source: str,
        description: str = "",
        payment_reference: str = None,
        idempotency_key: str = None,
    ) -> WalletTransaction:
        """
        Move money on a locked wallet and record the ledger entry.

        The caller must hold the wallet lock (see `lock_wallet`). Raises
        InsufficientBalanceError if the entry would take the balance below
        zero; holds are not considered here.
        """
        delta = amount if transaction_type == TransactionType.CREDIT else -amount
        balance_before = wallet.balance
        if balance_before + delta < 0:
            raise InsufficientBalanceError(
                f"Insufficient balance. Balance: {balance_before}, required: {amount}"
            )

        now = timezone.now()
        # F() increment: the stored balance is never computed from a stale read.
        Wallet.objects.filter(pk=wallet.pk).update(
            balance=F("balance") + delta,
            last_transaction_at=now,
            updated_at=now,
        )
        wallet.refresh_from_db()

        return WalletTransaction.objects.create(
            wallet=wallet,
            transaction_type=transaction_type,
            amount=amount,
            balance_before=balance_before,
            balance_after=wallet.balance,
            source=source,
            description=description[:500],
            payment_reference=payment_reference,
            status=WalletTransaction.Status.COMPLETED,
            idempotency_key=idempotency_key,
        )

    @staticmethod
    def _existing_entry(
        wallet: Wallet, idempotency_key: str, amount, transaction_type: str, source: str
    ):
        if not idempotency_key:
            return None
        existing = WalletTransaction.objects.filter(
            idempotency_key=idempotency_key
        ).first()
        if existing is None:
            return None
        if existing.wallet_id != wallet.pk:
            logger.warning(
                "Idempotency key reused across wallets: key=%s wallet=%s",
                idempotency_key,
                wallet.uuid,
            )
            raise ValidationError("Idempotency key has already been used.")
        if existing.transaction_type != transaction_type or existing.source != source:
            logger.warning(
                "Idempotency key reused for another operation: key=%s existing=%s/%s new=%s/%s",
                idempotency_key,
                existing.transaction_type,
                existing.source,
                transaction_type,
                source,
            )
            raise ValidationError("Idempotency key has already been used for another operation.")
        if existing.amount != amount:
            logger.warning(
                "Idempotency conflict: key=%s existing_amount=%s new_amount=%s",
                idempotency_key,
                existing.amount,
                amount,
            )
        logger.info(
            "Idempotent ledger request: key=%s tx=%s", idempotency_key, existing.uuid
        )
        return existing

    @staticmethod
    def _check_source(source):
        if source not in Source.values:
            raise ValidationError(f"Unknown transaction source: {source}.")

    @staticmethod
    @transaction.atomic
    def credit_wallet(
        user,
        amount,
        source: str,
        description: str = "",
        payment_reference: str = None,
        idempotency_key: str = None,
    ) -> WalletTransaction:
        """
        Credit the user's wallet.

        A repeated idempotency_key returns the entry recorded the first time
        without moving money again. Credits are accepted on suspended wallets.
        """
        amount = to_money(amount)
        WalletService._check_source(source)

        wallet = WalletService.lock_wallet(user)

        existing = WalletService._existing_entry(
            wallet, idempotency_key, amount, TransactionType.CREDIT, source
        )
        if existing:
            return existing

        tx = WalletService.post_entry(
            wallet,
            TransactionType.CREDIT,
            amount,
            source,
            description=description,
            payment_reference=payment_reference,
            idempotency_key=idempotency_key,
        )

        logger.info(
            "Wallet credited: wallet=%s amount=%s source=%s new_balance=%s tx=%s",
            wallet.uuid,
            amount,
            source,
            wallet.balance,
            tx.uuid,
        )
        notify_user(
            user,
            Notification.Type.WALLET_CREDITED,
            "Wallet credited",
            f"{amount} {wallet.currency} added to your wallet. {description}".strip(),
            {"transaction_id": str(tx.uuid), "amount": amount, "source": source},
        )
        return tx

    @staticmethod
    @transaction.atomic
    def debit_wallet(
        user,
        amount,
        source: str,
        description: str = "",
        payment_reference: str = None,
        idempotency_key: str = None,
    ) -> WalletTransaction:
        """
        Debit the user's wallet.

        The amount must be covered by the available balance, i.e. the
        balance minus every ACTIVE hold.

        Raises:
            ValidationError: amount not positive, unknown source or wallet
                suspended.
            InsufficientBalanceError: available balance below amount. The
                balance is left unchanged.
        """
        amount = to_money(amount)
        WalletService._check_source(source)

        wallet = WalletService.lock_wallet(user)
        WalletService.ensure_active(wallet)

        existing = WalletService._existing_entry(
            wallet, idempotency_key, amount, TransactionType.DEBIT, source
        )
        if existing:
            return existing

        available = wallet.balance - WalletService.active_hold_total(wallet)
        if available < amount:
            logger.warning(
                "Debit rejected (insufficient balance): wallet=%s available=%s amount=%s",
                wallet.uuid,
                available,
                amount,
            )
            raise InsufficientBalanceError(
                f"Insufficient balance. Available: {available}, required: {amount}"
            )

        tx = WalletService.post_entry(
            wallet,
            TransactionType.DEBIT,
            amount,
            source,
            description=description,
            payment_reference=payment_reference,
            idempotency_key=idempotency_key,
        )

        logger.info(
            "Wallet debited: wallet=%s amount=%s source=%s new_balance=%s tx=%s",
            wallet.uuid,
            amount,
            source,
            wallet.balance,
            tx.uuid,
        )
        notify_user(
            user,
            Notification.Type.WALLET_DEBITED,
            "Wallet debited",
            f"{amount} {wallet.currency} deducted from your wallet. {description}".strip(),
            {"transaction_id": str(tx.uuid), "amount": amount, "source": source},
        )
        return tx

    @staticmethod
    def credit_referral_earnings(
        user, amount, referral_request_id, description: str = ""
    ) -> WalletTransaction:
        """Pay a referrer for a completed referral. Once per referral request."""
        return WalletService.credit_wallet(
            user,
            amount,
            Source.REFERRAL_EARNINGS,
            description=description or f"Referral reward for request {referral_request_id}",
            payment_reference=str(referral_request_id),
            idempotency_key=f"referral-earnings:{referral_request_id}",
        )

    @staticmethod
    def give_welcome_bonus(user):
        amount = setting_money(getattr(settings, "WALLET_WELCOME_BONUS", 0))
        if amount <= ZERO:
            return None
        return WalletService.credit_wallet(
            user,
            amount,
            Source.NEW_USER_BONUS,
            description="Welcome bonus",
            idempotency_key=f"welcome:{user.pk}",
        )

    @staticmethod
    @transaction.atomic
    def give_referral_signup_bonuses(new_user, referrer):
        """
        Credit both sides of a sign-up made with a referral code.

        Returns (new_user_tx, referrer_tx), or None when the bonus is
        disabled. Wallets are locked in primary key order.
        """
        amount = setting_money(getattr(settings, "WALLET_REFERRAL_SIGNUP_BONUS", 0))
        if amount <= ZERO:
            return None
        if new_user.pk == referrer.pk:
            raise ValidationError("Users cannot refer themselves.")

        credits = {
            new_user.pk: (new_user, "Sign-up bonus for joining with a referral code", "referee"),
            referrer.pk: (referrer, "Bonus for referring a new user", "referrer"),
        }
        results = {}
        for pk in sorted(credits):
            user, description, side = credits[pk]
            results[side] = WalletService.credit_wallet(
                user,
                amount,
                Source.REFERRAL_BONUS,
                description=description,
                idempotency_key=f"referral-signup:{new_user.pk}:{side}",
            )
        return results["referee"], results["referrer"]

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    @staticmethod
    def get_transaction_history(
        user, page=1, page_size=20, transaction_type=None
    ) -> dict:
        wallet = WalletService.get_or_create_wallet(user)
        queryset = WalletTransaction.objects.filter(wallet=wallet)
        if transaction_type:
            transaction_type = str(transaction_type).upper()
            if transaction_type not in TransactionType.values:
                raise ValidationError("Transaction type must be CREDIT or DEBIT.")
            queryset = queryset.filter(transaction_type=transaction_type)

        result = paginate(queryset, page, page_size, max_page_size=MAX_PAGE_SIZE)
        return {
            "transactions": result.pop("items"),
            "current_balance": wallet.balance,
            "currency": wallet.currency,
            **result,
        }

    @staticmethod
    def get_wallet_stats(user) -> dict:
        wallet = WalletService.get_or_create_wallet(user)
        credit = Q(transaction_type=TransactionType.CREDIT)
        debit = Q(transaction_type=TransactionType.DEBIT)
        stats = WalletTransaction.objects.completed().filter(wallet=wallet).aggregate(
            total_credited=money_sum("amount", filter=credit),
            total_debited=money_sum("amount", filter=debit),
            total_recharged=money_sum("amount", filter=credit & Q(source=Source.RECHARGE)),
            total_earned=money_sum(
                "amount", filter=credit & Q(source=Source.REFERRAL_EARNINGS)
            ),
            total_spent_on_referrals=money_sum(
                "amount",
                filter=debit & Q(source__in=[Source.REFERRAL_REQUEST, Source.CANCELLATION_FEE]),
            ),
            transaction_count=Count("id"),
            last_credit_at=Max("created_at", filter=credit),
            last_debit_at=Max("created_at", filter=debit),
        )
        stats.update(balance=wallet.balance, currency=wallet.currency)
        return stats

    @staticmethod
    def ledger_balance(wallet: Wallet):
        """Sum of signed COMPLETED entries; equals wallet.balance."""
        totals = WalletTransaction.objects.completed().filter(wallet=wallet).aggregate(
            credits=money_sum(
                "amount", filter=Q(transaction_type=TransactionType.CREDIT)
            ),
            debits=money_sum("amount", filter=Q(transaction_type=TransactionType.DEBIT)),
        )
        return totals["credits"] - totals["debits"]
