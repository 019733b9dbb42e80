import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from coursepay.config import settings
from coursepay.constants.payment_status import PaymentMethod
from coursepay.exceptions import PaymobError

logger = logging.getLogger(__name__)

DEFAULT_PHONE = "+201000000000"
PLACEHOLDER = "NA"


@dataclass
class GatewayCheckout:
    order_id: str
    payment_key: str
    checkout_url: str
    integration_id: int
    billing_data: Dict[str, str]
    order: Dict[str, Any] = field(default_factory=dict)


def build_billing_data(full_name: Optional[str], email: str, phone: Optional[str] = None) -> Dict[str, str]:
    """
    Paymob requires a full billing profile. Courses are digital goods, so
    everything we do not collect gets a sentinel value.
    """
    parts = (full_name or "").split()
    if parts:
        first_name = parts[0]
        last_name = " ".join(parts[1:]) or "Name"
    else:
        first_name = (email or "").split("@")[0] or "User"
        last_name = "Name"

    return {
        "first_name": first_name,
        "last_name": last_name,
        "email": email or "",
        "phone_number": phone or DEFAULT_PHONE,
        "apartment": PLACEHOLDER,
        "floor": PLACEHOLDER,
        "street": PLACEHOLDER,
        "building": PLACEHOLDER,
        "shipping_method": PLACEHOLDER,
        "postal_code": "00000",
        "city": "Cairo",
        "state": "Cairo",
        "country": settings.paymob_country,
    }


class PaymobClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or settings.paymob_api_key
        self.base_url = (base_url or settings.paymob_base_url).rstrip("/")
        self.timeout = timeout or settings.paymob_request_timeout
        self.http = http or requests.Session()

    # -------------------------
    # ROUTES
    # -------------------------
    @staticmethod
    def integration_id(method: str) -> int:
        if PaymentMethod(method) == PaymentMethod.voucher:
            return settings.paymob_voucher_integration_id
        return settings.paymob_card_integration_id

    @staticmethod
    def iframe_id(method: str) -> int:
        if PaymentMethod(method) == PaymentMethod.voucher:
            return settings.paymob_voucher_iframe_id
        return settings.paymob_card_iframe_id

    def checkout_url(self, method: str, payment_key: str, redirect_url: Optional[str] = None) -> str:
        url = (
            f"{self.base_url}/acceptance/iframes/{self.iframe_id(method)}"
            f"?payment_token={payment_key}"
        )
        if redirect_url:
            url += f"&redirect_url={quote(redirect_url, safe='')}"
        return url

    # -------------------------
    # HTTP
    # -------------------------
    def _post(self, step: str, path: str, payload: dict, token: Optional[str] = None) -> dict:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.http.post(
                f"{self.base_url}{path}",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"[PAYMOB] {step} request error: {e}")
            raise PaymobError(step, str(e)) from e

        if not 200 <= response.status_code < 300:
            logger.error(f"[PAYMOB] {step} failed ({response.status_code})")
            raise PaymobError(step, response.text[:200], response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise PaymobError(step, "invalid JSON response", response.status_code) from e

    # -------------------------
    # STEPS
    # -------------------------
    def authenticate(self) -> str:
        data = self._post("auth", "/auth/tokens", {"api_key": self.api_key})
        token = data.get("token")
        if not token:
            raise PaymobError("auth", "no token in response")
        return token

    def create_order(
        self,
        token: str,
        amount_cents: int,
        currency: str,
        items: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        order = self._post(
            "order",
            "/ecommerce/orders",
            {
                "amount_cents": amount_cents,
                "currency": currency,
                "delivery_needed": False,
                "items": items,
            },
            token=token,
        )
        if not order.get("id"):
            raise PaymobError("order", "no order id in response")
        return order

    def create_payment_key(
        self,
        token: str,
        order_id: str,
        amount_cents: int,
        currency: str,
        integration_id: int,
        billing_data: Dict[str, str],
        redirect_url: Optional[str] = None,
    ) -> str:
        payload = {
            "amount_cents": amount_cents,
            "currency": currency,
            "integration_id": integration_id,
            "order_id": str(order_id),
            "billing_data": billing_data,
        }
        if redirect_url:
            payload["redirect_url"] = redirect_url

        data = self._post("payment_key", "/acceptance/payment_keys", payload, token=token)
        key = data.get("token")
        if not key:
            raise PaymobError("payment_key", "no payment key in response")
        return key

    def inquire_transaction(self, token: str, order_id: str) -> Dict[str, Any]:
        return self._post(
            "transaction_inquiry",
            "/ecommerce/orders/transaction_inquiry",
            {"order_id": int(order_id) if str(order_id).isdigit() else order_id},
            token=token,
        )

    def start_checkout(
        self,
        *,
        amount_cents: int,
        currency: str,
        method: str,
        item_name: str,
        item_description: Optional[str],
        billing_data: Dict[str, str],
        redirect_url: Optional[str] = None,
    ) -> GatewayCheckout:
        """auth -> order -> payment key. Any failed step aborts the checkout."""
        integration_id = self.integration_id(method)

        token = self.authenticate()
        order = self.create_order(
            token,
            amount_cents,
            currency,
            [{
                "name": item_name,
                "amount_cents": amount_cents,
                "description": item_description or item_name,
                "quantity": 1,
            }],
        )
        order_id = str(order["id"])
        logger.info(f"[PAYMOB] order created order_id={order_id} integration_id={integration_id}")

        payment_key = self.create_payment_key(
            token,
            order_id,
            amount_cents,
            currency,
            integration_id,
            billing_data,
            redirect_url=redirect_url,
        )

        return GatewayCheckout(
            order_id=order_id,
            payment_key=payment_key,
            checkout_url=self.checkout_url(method, payment_key, redirect_url),
            integration_id=integration_id,
            billing_data=billing_data,
            order=order,
        )


def get_paymob_client() -> PaymobClient:
    return PaymobClient()
