from django.urls import path

from ledger.views import (
    AdminWithdrawalListView,
    BalanceView,
    BonusPackListView,
    CreateRechargeOrderView,
    DebitView,
    HoldListView,
    ProcessWithdrawalView,
    RechargeHistoryView,
    TransactionListView,
    VerifyRechargeView,
    WalletStatsView,
    WalletView,
    WithdrawableBalanceView,
    WithdrawalHistoryView,
    WithdrawView,
)

urlpatterns = [
    path("wallet", WalletView.as_view(), name="wallet"),
    path("wallet/balance", BalanceView.as_view(), name="wallet-balance"),
    path("wallet/stats", WalletStatsView.as_view(), name="wallet-stats"),
    path("wallet/recharge/packs", BonusPackListView.as_view(), name="recharge-packs"),
    path(
        "wallet/recharge/create-order",
        CreateRechargeOrderView.as_view(),
        name="recharge-create-order",
    ),
    path("wallet/recharge/verify", VerifyRechargeView.as_view(), name="recharge-verify"),
    path(
        "wallet/recharge/history",
        RechargeHistoryView.as_view(),
        name="recharge-history",
    ),
    path("wallet/transactions", TransactionListView.as_view(), name="wallet-transactions"),
    path("wallet/debit", DebitView.as_view(), name="wallet-debit"),
    path(
        "wallet/withdrawable",
        WithdrawableBalanceView.as_view(),
        name="wallet-withdrawable",
    ),
    path("wallet/withdraw", WithdrawView.as_view(), name="wallet-withdraw"),
    path("wallet/withdrawals", WithdrawalHistoryView.as_view(), name="wallet-withdrawals"),
    path("wallet/holds", HoldListView.as_view(), name="wallet-holds"),
    path(
        "wallet/admin/withdrawals",
        AdminWithdrawalListView.as_view(),
        name="admin-withdrawals",
    ),
    path(
        "wallet/admin/withdrawals/<uuid:uuid>/process",
        ProcessWithdrawalView.as_view(),
        name="admin-withdrawal-process",
    ),
]
