import logging

from rest_framework.views import APIView

from ledger.permissions import CanManagePayouts
from ledger.serializers import AdminWithdrawalSerializer, ProcessWithdrawalSerializer
from ledger.services import WithdrawalService
from ledger.utils.pagination import page_params
from ledger.utils.responses import success_response

logger = logging.getLogger(__name__)


class AdminWithdrawalListView(APIView):
    """GET /api/wallet/admin/withdrawals: All withdrawals. Query param: status."""

    permission_classes = [CanManagePayouts]

    def get(self, request, *args, **kwargs):
        page, page_size = page_params(request.query_params)
        result = WithdrawalService.list_withdrawals(
            status=request.query_params.get("status"), page=page, page_size=page_size
        )
        result["withdrawals"] = AdminWithdrawalSerializer(
            result["withdrawals"], many=True
        ).data
        return success_response(result)


class ProcessWithdrawalView(APIView):
    """
    POST /api/wallet/admin/withdrawals/<uuid>/process

    Request body: {"action": "approve", "payment_reference"?: "..."} or
    {"action": "reject", "rejection_reason": "..."}
    """

    permission_classes = [CanManagePayouts]

    def post(self, request, uuid, *args, **kwargs):
        serializer = ProcessWithdrawalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        withdrawal = WithdrawalService.process_withdrawal(
            uuid,
            serializer.validated_data["action"],
            request.user,
            payment_reference=serializer.validated_data.get("payment_reference"),
            rejection_reason=serializer.validated_data.get("rejection_reason"),
        )
        return success_response(
            AdminWithdrawalSerializer(withdrawal).data,
            message=f"Withdrawal {withdrawal.status.lower()}.",
        )
