from ledger.views.wallet import BalanceView, WalletStatsView, WalletView
from ledger.views.recharge import (
    BonusPackListView,
    CreateRechargeOrderView,
    RechargeHistoryView,
    VerifyRechargeView,
)
from ledger.views.transaction import TransactionListView
from ledger.views.debit import DebitView
from ledger.views.withdraw import (
    WithdrawableBalanceView,
    WithdrawalHistoryView,
    WithdrawView,
)
from ledger.views.hold import HoldListView
from ledger.views.payouts import AdminWithdrawalListView, ProcessWithdrawalView

__all__ = [
    "BalanceView",
    "WalletStatsView",
    "WalletView",
    "BonusPackListView",
    "CreateRechargeOrderView",
    "RechargeHistoryView",
    "VerifyRechargeView",
    "TransactionListView",
    "DebitView",
    "WithdrawableBalanceView",
    "WithdrawalHistoryView",
    "WithdrawView",
    "HoldListView",
    "AdminWithdrawalListView",
    "ProcessWithdrawalView",
]
