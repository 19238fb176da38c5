import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import F
from django.utils import timezone

from ledger.exceptions import NotFoundError, ValidationError
from ledger.models import BonusPack, PromoCode, PromoCodeUsage, WalletTransaction
from ledger.models.base import ZERO
from ledger.services.wallet import WalletService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoValidation:
    valid: bool
    message: str = ""
    promo_code: PromoCode = None
    bonus_amount: Decimal = ZERO


class PromoService:
    """Recharge bonus packs and promo codes."""

    @staticmethod
    def get_active_packs():
        return BonusPack.objects.filter(is_active=True).order_by("pay_amount", "id")

    @staticmethod
    def find_pack(pack_id, amount) -> BonusPack:
        try:
            pack_id = int(pack_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid bonus pack id.")

        pack = BonusPack.objects.filter(pk=pack_id, is_active=True).first()
        if pack is None:
            raise NotFoundError("Bonus pack not found.")
        if pack.pay_amount != amount:
            raise ValidationError(
                f"Amount {amount} does not match the selected pack ({pack.pay_amount})."
            )
        return pack

    @staticmethod
    def compute_bonus(promo: PromoCode, amount) -> Decimal:
        if promo.promo_type == PromoCode.Type.PERCENT_BONUS:
            bonus = (amount * promo.value / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        else:
            bonus = promo.value
        if promo.max_bonus_amount is not None:
            bonus = min(bonus, promo.max_bonus_amount)
        return max(ZERO, Decimal(bonus).quantize(Decimal("0.01")))

    @staticmethod
    def validate_promo_code(code, user, amount) -> PromoValidation:
        code = (code or "").strip().upper()
        promo = PromoCode.objects.filter(code=code, is_active=True).first()
        if promo is None:
            return PromoValidation(False, "Invalid promo code.")
        if promo.expires_at and promo.expires_at <= timezone.now():
            return PromoValidation(False, "This promo code has expired.")
        if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
            return PromoValidation(False, "This promo code has reached its usage limit.")
        used = PromoCodeUsage.objects.filter(promo_code=promo, user=user).count()
        if used >= promo.per_user_limit:
            return PromoValidation(False, "You have already used this promo code.")
        if amount < promo.min_recharge_amount:
            return PromoValidation(
                False,
                f"Minimum recharge of {promo.min_recharge_amount} required for this promo code.",
            )

        bonus = PromoService.compute_bonus(promo, amount)
        return PromoValidation(
            True,
            f"You will get {bonus} bonus credit.",
            promo_code=promo,
            bonus_amount=bonus,
        )

    @staticmethod
    def apply_recharge_bonuses(order, user) -> Decimal:
        """
        Credit the pack and promo bonuses of a freshly paid recharge order.

        Runs inside the verification transaction. Each bonus is keyed on the
        gateway order id, so it is credited at most once. A promo code that
        stopped being valid since the order was created is skipped.
        """
        total = ZERO

        pack = order.bonus_pack
        if pack is not None and pack.bonus_amount > 0:
            WalletService.credit_wallet(
                user,
                pack.bonus_amount,
                WalletTransaction.Source.RECHARGE_BONUS,
                description=f"{pack.name} bonus",
                payment_reference=order.gateway_order_id,
                idempotency_key=f"recharge-bonus:pack:{order.gateway_order_id}",
            )
            total += pack.bonus_amount

        if order.promo_code:
            validation = PromoService.validate_promo_code(order.promo_code, user, order.amount)
            if not validation.valid:
                logger.warning(
                    "Promo bonus skipped: order=%s code=%s reason=%s",
                    order.gateway_order_id,
                    order.promo_code,
                    validation.message,
                )
            elif validation.bonus_amount > 0:
                promo = validation.promo_code
                WalletService.credit_wallet(
                    user,
                    validation.bonus_amount,
                    WalletTransaction.Source.RECHARGE_BONUS,
                    description=f"Promo code {promo.code} bonus",
                    payment_reference=order.gateway_order_id,
                    idempotency_key=f"recharge-bonus:promo:{order.gateway_order_id}",
                )
                PromoCodeUsage.objects.create(
                    promo_code=promo,
                    user=user,
                    recharge_order=order,
                    recharge_amount=order.amount,
                    bonus_given=validation.bonus_amount,
                )
                PromoCode.objects.filter(pk=promo.pk).update(current_uses=F("current_uses") + 1)
                total += validation.bonus_amount

        if total:
            logger.info(
                "Recharge bonuses credited: order=%s total=%s", order.gateway_order_id, total
            )
        return total
