from rest_framework.views import APIView

from ledger.serializers import HoldSerializer
from ledger.services import HoldService, WalletService
from ledger.utils.responses import success_response


class HoldListView(APIView):
    """GET /api/wallet/holds: The caller's holds. Query param: status."""

    def get(self, request, *args, **kwargs):
        holds = HoldService.get_user_holds(
            request.user, status=request.query_params.get("status")
        )
        balance = WalletService.get_available_balance(request.user)
        return success_response(
            {
                "holds": HoldSerializer(holds.select_related("settlement"), many=True).data,
                "hold_amount": balance["hold_amount"],
                "available_balance": balance["available_balance"],
            }
        )
