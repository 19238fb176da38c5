from ledger.services.wallet import WalletService
from ledger.services.hold import HoldService
from ledger.services.promo import PromoService
from ledger.services.recharge import RechargeService
from ledger.services.withdrawal import WithdrawalService

__all__ = [
    "WalletService",
    "HoldService",
    "PromoService",
    "RechargeService",
    "WithdrawalService",
]
