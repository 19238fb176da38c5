from django.contrib import admin

from ledger.models import (
    BonusPack,
    Notification,
    PromoCode,
    PromoCodeUsage,
    RechargeOrder,
    Wallet,
    WalletHold,
    WalletTransaction,
    WithdrawalRequest,
)


class ReadOnlyAdminMixin:
    """
    Mixin that makes an admin model completely read-only.
    Money only moves through the ledger services, so wallets, holds,
    transactions and orders are browsable here but never editable.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "uuid", "user", "balance", "currency", "status", "last_transaction_at")
    list_filter = ("status", "currency")
    search_fields = ("uuid", "user__username", "user__email")


@admin.register(WalletHold)
class WalletHoldAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "uuid",
        "wallet",
        "referral_request_id",
        "amount",
        "status",
        "created_at",
        "converted_at",
        "released_at",
    )
    list_filter = ("status",)
    search_fields = ("uuid", "referral_request_id", "wallet__uuid")


@admin.register(WalletTransaction)
class WalletTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "wallet",
        "transaction_type",
        "amount",
        "balance_after",
        "source",
        "status",
        "created_at",
    )
    list_filter = ("transaction_type", "source", "status")
    search_fields = ("uuid", "wallet__uuid", "payment_reference")


@admin.register(RechargeOrder)
class RechargeOrderAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "gateway_order_id",
        "user",
        "amount",
        "status",
        "gateway_payment_id",
        "bonus_credited",
        "created_at",
        "paid_at",
    )
    list_filter = ("status", "payment_gateway")
    search_fields = ("gateway_order_id", "gateway_payment_id", "receipt", "user__username")


@admin.register(WithdrawalRequest)
class WithdrawalRequestAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "uuid",
        "user",
        "amount",
        "net_amount",
        "status",
        "created_at",
        "processed_at",
        "processed_by",
    )
    list_filter = ("status",)
    search_fields = ("uuid", "user__username", "payment_reference")


@admin.register(PromoCodeUsage)
class PromoCodeUsageAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "promo_code", "user", "recharge_amount", "bonus_given", "created_at")
    search_fields = ("promo_code__code", "user__username")


@admin.register(BonusPack)
class BonusPackAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "pay_amount", "bonus_amount", "badge", "is_active")
    list_filter = ("is_active",)


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "promo_type",
        "value",
        "max_bonus_amount",
        "current_uses",
        "max_uses",
        "expires_at",
        "is_active",
    )
    list_filter = ("promo_type", "is_active")
    search_fields = ("code",)
    readonly_fields = ("current_uses",)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "notification_type", "title", "is_read", "created_at")
    list_filter = ("notification_type", "is_read")
    search_fields = ("user__username", "title")
