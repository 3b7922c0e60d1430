"""Razorpay client wrapper.

Creates orders over the Razorpay Orders API and checks checkout signatures.
"""

import hashlib
import hmac
import logging
from typing import Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class RazorpayError(Exception):
    """Raised when the Razorpay API cannot be reached or rejects a request."""
    pass


class RazorpayClient:
    """Thin async client for the parts of Razorpay this service uses."""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.base_url = (base_url or settings.RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> dict:
        """Create an order.

        Args:
            amount: Amount in the currency's smallest unit (paise for INR)
            currency: ISO currency code
            receipt: Merchant receipt reference
            notes: Free-form key/value notes stored with the order

        Returns:
            dict: The order as returned by Razorpay (includes "id")

        Raises:
            RazorpayError: If credentials are missing or the call fails
        """
        if not self.is_configured:
            raise RazorpayError("Payment gateway not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/orders",
                    auth=(self.key_id, self.key_secret),
                    json={
                        "amount": amount,
                        "currency": currency,
                        "receipt": receipt,
                        "notes": notes or {},
                    },
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            description = _error_description(e.response)
            logger.error(f"Razorpay order creation rejected: {description}")
            raise RazorpayError(f"Failed to create order: {description}") from e
        except httpx.HTTPError as e:
            raise RazorpayError(f"Failed to create order: {e}") from e

    def expected_signature(self, order_id: str, payment_id: str) -> str:
        """HMAC-SHA256 of "order_id|payment_id" keyed with the API secret."""
        return hmac.new(
            self.key_secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check a checkout signature in constant time."""
        if not self.key_secret or not signature:
            return False
        return hmac.compare_digest(self.expected_signature(order_id, payment_id), signature)


def _error_description(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("description") or response.text
    except ValueError:
        return response.text
