import hashlib
import hmac
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.razorpay.com/v1"
DEFAULT_TIMEOUT = 10


def _credentials():
    return (
        getattr(settings, "RAZORPAY_KEY_ID", ""),
        getattr(settings, "RAZORPAY_KEY_SECRET", ""),
    )


def create_razorpay_order(
    amount_paise: int, currency: str, receipt: str, notes: dict = None
) -> dict:
    """
    Create an order with the Razorpay Orders API.

    Network failures (connection errors, timeouts) and non-2xx answers are
    reported through the returned dict rather than raised, so the caller can
    decide how to surface them.

    Args:
        amount_paise: Order amount in the smallest currency unit.
        currency: ISO currency code, e.g. "INR".
        receipt: Merchant receipt id (max 40 characters).
        notes: Optional key/value notes stored on the order.

    Returns:
        dict with keys:
            - success (bool): Whether the gateway created the order.
            - response (dict): The order payload or error details.
    """
    base_url = getattr(settings, "RAZORPAY_BASE_URL", DEFAULT_BASE_URL).rstrip("/")
    timeout = getattr(settings, "RAZORPAY_TIMEOUT", DEFAULT_TIMEOUT)
    key_id, key_secret = _credentials()

    if not key_id or not key_secret:
        logger.error("Razorpay credentials are not configured.")
        return {
            "success": False,
            "response": {"error": "not_configured"},
        }

    try:
        response = requests.post(
            f"{base_url}/orders",
            json={
                "amount": amount_paise,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
            auth=(key_id, key_secret),
            timeout=timeout,
        )

        try:
            response_data = response.json()
        except ValueError:
            response_data = {"error": "invalid_json", "detail": response.text[:500]}

        if response.ok and response_data.get("id"):
            logger.info(
                "Razorpay order created: order=%s amount_paise=%d receipt=%s",
                response_data["id"],
                amount_paise,
                receipt,
            )
            return {"success": True, "response": response_data}

        logger.warning(
            "Razorpay order creation failed: status=%s amount_paise=%d response=%s",
            response.status_code,
            amount_paise,
            response_data,
        )
        return {"success": False, "response": response_data}

    except requests.exceptions.ConnectionError as exc:
        logger.error(
            "Razorpay connection error: amount_paise=%d error=%s",
            amount_paise,
            str(exc),
        )
        return {
            "success": False,
            "response": {"error": "connection_error", "detail": str(exc)},
        }

    except requests.exceptions.Timeout as exc:
        logger.error(
            "Razorpay timeout: amount_paise=%d error=%s",
            amount_paise,
            str(exc),
        )
        return {
            "success": False,
            "response": {"error": "timeout", "detail": str(exc)},
        }

    except requests.exceptions.RequestException as exc:
        logger.error(
            "Razorpay request error: amount_paise=%d error=%s",
            amount_paise,
            str(exc),
        )
        return {
            "success": False,
            "response": {"error": "request_error", "detail": str(exc)},
        }


def compute_payment_signature(order_id: str, payment_id: str) -> str:
    _, key_secret = _credentials()
    return hmac.new(
        key_secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_payment_signature(order_id: str, payment_id: str, signature: str) -> bool:
    """Check Razorpay's HMAC-SHA256 signature over "order_id|payment_id"."""
    _, key_secret = _credentials()
    if not key_secret or not signature:
        return False
    expected = compute_payment_signature(order_id, payment_id)
    return hmac.compare_digest(expected, str(signature))
