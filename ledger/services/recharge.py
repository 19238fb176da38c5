import logging
import re
import time
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ledger.exceptions import (
    AuthorizationError,
    NotFoundError,
    PaymentGatewayError,
    ValidationError,
)
from ledger.models import RechargeOrder, WalletTransaction
from ledger.services.promo import PromoService
from ledger.services.wallet import WalletService
from ledger.utils.money import setting_money, to_money, to_paise
from ledger.utils.pagination import MAX_PAGE_SIZE, paginate
from ledger.utils.razorpay import create_razorpay_order, verify_payment_signature

logger = logging.getLogger(__name__)

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    digits = ""
    while number:
        number, remainder = divmod(number, 36)
        digits = BASE36_DIGITS[remainder] + digits
    return digits or "0"


def build_receipt(user) -> str:
    """Gateway receipt ids are limited to 40 characters."""
    user_part = re.sub(r"[^A-Za-z0-9]", "", str(user.pk))[:10]
    return f"wallet_{user_part}_{_base36(int(time.time() * 1000))}"[:40]


class RechargeService:
    """
    Wallet top-ups through Razorpay.

    create_recharge_order opens a PENDING order with the gateway.
    verify_and_credit_wallet checks the gateway's payment signature and then
    credits the order amount exactly once per payment id: the credit carries
    the idempotency key `recharge:<payment_id>` and the order stores the
    payment id in a unique column.
    """

    @staticmethod
    def create_recharge_order(user, amount, pack_id=None, promo_code=None) -> RechargeOrder:
        amount = to_money(amount)
        max_amount = setting_money(getattr(settings, "WALLET_MAX_RECHARGE_AMOUNT", 100000))
        if amount > max_amount:
            raise ValidationError(f"Maximum recharge amount is {max_amount}.")

        wallet = WalletService.get_or_create_wallet(user)

        pack = PromoService.find_pack(pack_id, amount) if pack_id else None

        promo = None
        if promo_code:
            validation = PromoService.validate_promo_code(promo_code, user, amount)
            if not validation.valid:
                raise ValidationError(validation.message)
            promo = validation.promo_code

        receipt = build_receipt(user)
        result = create_razorpay_order(
            amount_paise=to_paise(amount),
            currency=wallet.currency,
            receipt=receipt,
            notes={
                "user_id": str(user.pk),
                "wallet_id": str(wallet.uuid),
                "purpose": "wallet_recharge",
            },
        )
        if not result["success"]:
            logger.warning(
                "Recharge order not created: user=%s amount=%s response=%s",
                user.pk,
                amount,
                result["response"],
            )
            raise PaymentGatewayError("Could not create payment order. Please try again.")

        ttl_hours = getattr(settings, "WALLET_RECHARGE_ORDER_TTL_HOURS", 24)
        order = RechargeOrder.objects.create(
            wallet=wallet,
            user=user,
            amount=amount,
            currency=wallet.currency,
            gateway_order_id=result["response"]["id"],
            receipt=receipt,
            bonus_pack=pack,
            promo_code=promo.code if promo else "",
            expires_at=timezone.now() + timedelta(hours=ttl_hours),
        )

        logger.info(
            "Recharge order created: user=%s order=%s amount=%s pack=%s promo=%s",
            user.pk,
            order.gateway_order_id,
            amount,
            pack.pk if pack else None,
            order.promo_code or None,
        )
        return order

    @staticmethod
    def verify_and_credit_wallet(
        user, razorpay_order_id, razorpay_payment_id, razorpay_signature
    ) -> dict:
        """
        Verify a Razorpay payment confirmation and credit the wallet.

        Returns a dict with the `order`, the recharge `transaction`, the
        `bonus_amount`, the `new_balance` and whether this was a `duplicate`
        verification of an already credited payment.

        Raises:
            ValidationError: missing fields, invalid signature (a FAILED
                transaction is recorded first) or a different payment for an
                order that is already paid.
            NotFoundError: unknown gateway order.
            AuthorizationError: the order belongs to another user.
        """
        if not (razorpay_order_id and razorpay_payment_id and razorpay_signature):
            raise ValidationError("Missing payment verification details.")

        order = RechargeOrder.objects.filter(gateway_order_id=razorpay_order_id).first()

        if not verify_payment_signature(
            razorpay_order_id, razorpay_payment_id, razorpay_signature
        ):
            logger.warning(
                "Invalid payment signature: user=%s order=%s payment=%s",
                user.pk,
                razorpay_order_id,
                razorpay_payment_id,
            )
            if order is not None and order.user_id == user.pk:
                RechargeService._record_failed_verification(order, razorpay_payment_id)
            raise ValidationError("Invalid payment signature.")

        if order is None:
            raise NotFoundError("Recharge order not found.")
        if order.user_id != user.pk:
            raise AuthorizationError("This recharge order does not belong to you.")

        return RechargeService._credit_order(
            user, order.pk, razorpay_payment_id, razorpay_signature
        )

    @staticmethod
    @transaction.atomic
    def _record_failed_verification(order, payment_id):
        """Keep a FAILED entry for the rejected confirmation; no money moves."""
        wallet = WalletService.lock_wallet(order.user)
        WalletTransaction.objects.create(
            wallet=wallet,
            transaction_type=WalletTransaction.TransactionType.CREDIT,
            amount=order.amount,
            balance_before=wallet.balance,
            balance_after=wallet.balance,
            source=WalletTransaction.Source.RECHARGE,
            description="Recharge failed: invalid payment signature",
            payment_reference=payment_id[:100],
            status=WalletTransaction.Status.FAILED,
        )
        if order.status == RechargeOrder.Status.PENDING:
            order.error_message = f"Invalid signature for payment {payment_id}"
            order.save(update_fields=["error_message", "updated_at"])

    @staticmethod
    @transaction.atomic
    def _credit_order(user, order_pk, payment_id, signature) -> dict:
        wallet = WalletService.lock_wallet(user)
        order = RechargeOrder.objects.select_for_update().get(pk=order_pk)

        if order.status == RechargeOrder.Status.PAID:
            if order.gateway_payment_id == payment_id:
                logger.info(
                    "Duplicate payment verification ignored: order=%s payment=%s",
                    order.gateway_order_id,
                    payment_id,
                )
                return {
                    "order": order,
                    "transaction": WalletTransaction.objects.filter(
                        idempotency_key=f"recharge:{payment_id}"
                    ).first(),
                    "bonus_amount": order.bonus_credited,
                    "new_balance": wallet.balance,
                    "duplicate": True,
                }
            raise ValidationError("This recharge order has already been paid.")

        if RechargeOrder.objects.filter(gateway_payment_id=payment_id).exists():
            raise ValidationError("This payment has already been used for another order.")

        if order.status != RechargeOrder.Status.PENDING:
            # The gateway captured the money, so a late confirmation still credits.
            logger.warning(
                "Crediting %s recharge order: order=%s payment=%s",
                order.status,
                order.gateway_order_id,
                payment_id,
            )

        tx = WalletService.credit_wallet(
            user,
            order.amount,
            WalletTransaction.Source.RECHARGE,
            description="Wallet recharge via Razorpay",
            payment_reference=payment_id,
            idempotency_key=f"recharge:{payment_id}",
        )

        order.status = RechargeOrder.Status.PAID
        order.gateway_payment_id = payment_id
        order.gateway_signature = signature
        order.paid_at = timezone.now()
        order.error_message = ""
        order.bonus_credited = PromoService.apply_recharge_bonuses(order, user)
        order.save(
            update_fields=[
                "status",
                "gateway_payment_id",
                "gateway_signature",
                "paid_at",
                "error_message",
                "bonus_credited",
                "updated_at",
            ]
        )

        wallet.refresh_from_db()
        logger.info(
            "Recharge verified: user=%s order=%s payment=%s amount=%s bonus=%s new_balance=%s",
            user.pk,
            order.gateway_order_id,
            payment_id,
            order.amount,
            order.bonus_credited,
            wallet.balance,
        )
        return {
            "order": order,
            "transaction": tx,
            "bonus_amount": order.bonus_credited,
            "new_balance": wallet.balance,
            "duplicate": False,
        }

    @staticmethod
    def get_recharge_history(user, page=1, page_size=20) -> dict:
        result = paginate(
            RechargeOrder.objects.filter(user=user).select_related("bonus_pack"),
            page,
            page_size,
            max_page_size=MAX_PAGE_SIZE,
        )
        result["orders"] = result.pop("items")
        return result

    @staticmethod
    def expire_stale_orders() -> int:
        now = timezone.now()
        expired = RechargeOrder.objects.filter(
            status=RechargeOrder.Status.PENDING, expires_at__lte=now
        ).update(
            status=RechargeOrder.Status.EXPIRED,
            error_message="Order expired before payment.",
            updated_at=now,
        )
        if expired:
            logger.info("Expired %d stale recharge order(s).", expired)
        return expired
