import logging

from rest_framework import status
from rest_framework.views import APIView

from ledger.serializers import WithdrawalSerializer, WithdrawSerializer
from ledger.services import WithdrawalService
from ledger.utils.pagination import page_params
from ledger.utils.responses import success_response

logger = logging.getLogger(__name__)


class WithdrawableBalanceView(APIView):
    """GET /api/wallet/withdrawable: How much referral income can be paid out."""

    def get(self, request, *args, **kwargs):
        return success_response(WithdrawalService.get_withdrawable_balance(request.user))


class WithdrawView(APIView):
    """
    POST /api/wallet/withdraw: Request a payout.

    Request body: {"amount": <decimal>, "upi_id": "..."} or
    {"amount": <decimal>, "bank_account_number": "...", "bank_ifsc": "...",
     "account_holder_name"?: "..."}
    """

    def post(self, request, *args, **kwargs):
        serializer = WithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payout_details = dict(serializer.validated_data)
        amount = payout_details.pop("amount")
        withdrawal = WithdrawalService.request_withdrawal(
            request.user, amount, payout_details
        )
        return success_response(
            WithdrawalSerializer(withdrawal).data,
            message="Withdrawal request submitted.",
            status_code=status.HTTP_201_CREATED,
        )


class WithdrawalHistoryView(APIView):
    """GET /api/wallet/withdrawals"""

    def get(self, request, *args, **kwargs):
        page, page_size = page_params(request.query_params)
        history = WithdrawalService.get_withdrawal_history(request.user, page, page_size)
        history["withdrawals"] = WithdrawalSerializer(
            history["withdrawals"], many=True
        ).data
        return success_response(history)
