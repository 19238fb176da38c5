import logging

from rest_framework.views import APIView

from ledger.serializers import (
    AvailableBalanceSerializer,
    WalletSerializer,
    WalletStatsSerializer,
)
from ledger.services import WalletService
from ledger.utils.responses import success_response

logger = logging.getLogger(__name__)


class WalletView(APIView):
    """GET /api/wallet: The caller's wallet, created on first access."""

    def get(self, request, *args, **kwargs):
        wallet = WalletService.get_or_create_wallet(request.user)
        data = WalletSerializer(wallet).data
        data.update(
            AvailableBalanceSerializer(
                WalletService.get_available_balance(request.user)
            ).data
        )
        return success_response(data)


class BalanceView(APIView):
    """GET /api/wallet/balance: Balance, held amount and available balance."""

    def get(self, request, *args, **kwargs):
        balance = WalletService.get_available_balance(request.user)
        return success_response(AvailableBalanceSerializer(balance).data)


class WalletStatsView(APIView):
    """GET /api/wallet/stats"""

    def get(self, request, *args, **kwargs):
        stats = WalletService.get_wallet_stats(request.user)
        return success_response(WalletStatsSerializer(stats).data)
