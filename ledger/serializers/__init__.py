from ledger.serializers.wallet import (
    AvailableBalanceSerializer,
    WalletSerializer,
    WalletStatsSerializer,
)
from ledger.serializers.transaction import TransactionSerializer
from ledger.serializers.hold import HoldSerializer
from ledger.serializers.debit import DebitSerializer
from ledger.serializers.recharge import (
    BonusPackSerializer,
    CreateRechargeOrderSerializer,
    RechargeOrderSerializer,
    VerifyRechargeSerializer,
)
from ledger.serializers.withdrawal import (
    AdminWithdrawalSerializer,
    ProcessWithdrawalSerializer,
    WithdrawalSerializer,
    WithdrawSerializer,
)

__all__ = [
    "AvailableBalanceSerializer",
    "WalletSerializer",
    "WalletStatsSerializer",
    "TransactionSerializer",
    "HoldSerializer",
    "DebitSerializer",
    "BonusPackSerializer",
    "CreateRechargeOrderSerializer",
    "RechargeOrderSerializer",
    "VerifyRechargeSerializer",
    "AdminWithdrawalSerializer",
    "ProcessWithdrawalSerializer",
    "WithdrawalSerializer",
    "WithdrawSerializer",
]
