from ledger.models.wallet import Wallet
from ledger.models.transaction import WalletTransaction
from ledger.models.hold import WalletHold
from ledger.models.promo import BonusPack, PromoCode, PromoCodeUsage
from ledger.models.recharge import RechargeOrder
from ledger.models.withdrawal import WithdrawalRequest
from ledger.models.notification import Notification

__all__ = [
    "Wallet",
    "WalletTransaction",
    "WalletHold",
    "BonusPack",
    "PromoCode",
    "PromoCodeUsage",
    "RechargeOrder",
    "WithdrawalRequest",
    "Notification",
]
