"""
Payment gateway adapter.

``PaymentGateway`` is the seam between the payment lifecycle and the
outside world: it creates remote orders and verifies checkout
signatures.  ``RazorpayGateway`` talks to the Razorpay Orders REST API
with ``requests`` (HTTP basic auth with the key id and secret).  Tests
substitute a subclass that overrides ``create_order``.

Checkout signatures are the hex HMAC‑SHA256 of
``"{order_id}|{payment_id}"`` keyed by the gateway secret.
"""

import hashlib
import hmac
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

# Razorpay rejects receipts longer than this.
MAX_RECEIPT_LENGTH = 40


class GatewayError(Exception):
    """Raised when the gateway cannot be reached or rejects a request."""


@dataclass
class GatewayOrder:
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: str = "created"
    raw: Dict[str, Any] = field(default_factory=dict)


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class PaymentGateway(ABC):
    """Abstract gateway: order creation plus signature verification."""

    def __init__(self, key_id: str, key_secret: str) -> None:
        self.key_id = key_id
        self.key_secret = key_secret

    @abstractmethod
    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayOrder:
        """Create a remote order for ``amount`` minor units."""

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check a checkout signature in constant time."""
        if not self.key_secret:
            logger.error("Cannot verify payment signature: gateway secret is not configured")
            return False
        expected = compute_signature(self.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected, signature)


class RazorpayGateway(PaymentGateway):
    """Razorpay Orders API client."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        api_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(key_id, key_secret)
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewayOrder:
        if not self.key_id or not self.key_secret:
            raise GatewayError(
                "Razorpay credentials are not configured. Please set RAZORPAY_KEY_ID "
                "and RAZORPAY_KEY_SECRET environment variables."
            )
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt[-MAX_RECEIPT_LENGTH:],
            "notes": notes or {},
        }
        try:
            response = self.session.post(
                f"{self.api_url}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Razorpay order request failed: %s", e)
            raise GatewayError(f"Could not reach Razorpay: {e}") from e

        if not response.ok:
            raise GatewayError(self._error_description(response))
        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError("Razorpay returned an invalid response") from e
        if not data.get("id"):
            raise GatewayError("Razorpay response did not contain an order id")
        logger.info("Created Razorpay order %s for receipt %s", data["id"], payload["receipt"])
        return GatewayOrder(
            id=str(data["id"]),
            amount=int(data.get("amount", amount)),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", payload["receipt"]),
            status=data.get("status", "created"),
            raw=data,
        )

    @staticmethod
    def _error_description(response: requests.Response) -> str:
        """Extract Razorpay's ``error.description`` if present."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("description"):
            return f"Razorpay error ({response.status_code}): {error['description']}"
        return f"Razorpay error ({response.status_code})"
