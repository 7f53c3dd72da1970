"""PayPal Orders v2 adapter (create + capture) over plain REST."""

from decimal import Decimal
from typing import Optional

import requests

from orderflow.domain.errors import ConfigurationError, ProviderError, ValidationError
from orderflow.services.payments.port import AmountBreakdown, CaptureResult, ProviderOrder, TwoStepGateway
from orderflow.utils.logging import get_logger
from orderflow.utils.retry import http_retry
from orderflow.utils.settings import PAYPAL_API_BASE, PAYPAL_CLIENT_ID, PAYPAL_SECRET

logger = get_logger(__name__)


def _value(currency: str, amount: Decimal) -> dict:
    return {"currency_code": currency, "value": f"{Decimal(amount):.2f}"}


def _issue(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return "UNPROCESSABLE_ENTITY"
    details = (data.get("details") if isinstance(data, dict) else None) or [{}]
    return details[0].get("issue") or "UNPROCESSABLE_ENTITY"


class PayPalGateway(TwoStepGateway):
    def __init__(
        self,
        client_id: str = PAYPAL_CLIENT_ID,
        secret: str = PAYPAL_SECRET,
        base_url: str = PAYPAL_API_BASE,
        timeout: int = 10,
    ):
        self.client_id = client_id
        self.secret = secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _token(self) -> str:
        if not self.client_id or not self.secret:
            raise ConfigurationError("PayPal credentials are not configured")

        url = f"{self.base_url}/v1/oauth2/token"
        resp = requests.post(
            url,
            auth=(self.client_id, self.secret),
            data={"grant_type": "client_credentials"},
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            raise ProviderError(f"PayPal authentication failed ({resp.status_code})")
        return resp.json()["access_token"]

    @http_retry()
    def _post(self, path: str, body: dict, request_id: Optional[str] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"PayPalGateway POST {url}")
        headers = {
            "Authorization": f"Bearer {self._token()}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        if request_id:
            # lets PayPal dedupe our own retries
            headers["PayPal-Request-Id"] = request_id
        return requests.post(url, json=body, headers=headers, timeout=self.timeout)

    def create_order(
        self,
        amount: AmountBreakdown,
        reference: Optional[str],
        return_url: str,
        cancel_url: str,
    ) -> ProviderOrder:
        cur = amount.currency
        unit = {
            "amount": {
                **_value(cur, amount.total),
                "breakdown": {
                    "item_total": _value(cur, amount.item_total),
                    "shipping": _value(cur, amount.shipping),
                    "tax_total": _value(cur, amount.tax),
                    "discount": _value(cur, amount.discount),
                },
            }
        }
        if reference:
            unit["reference_id"] = reference

        resp = self._post(
            "/v2/checkout/orders",
            {
                "intent": "CAPTURE",
                "purchase_units": [unit],
                "application_context": {"return_url": return_url, "cancel_url": cancel_url},
            },
            request_id=reference,
        )
        if resp.status_code >= 400:
            logger.error(f"[PAYPAL CREATE] {resp.status_code}: {resp.text[:500]}")
            raise ProviderError("Failed to create PayPal order")

        data = resp.json()
        approval = next((l["href"] for l in data.get("links", []) if l.get("rel") in ("approve", "payer-action")), None)
        if not data.get("id") or not approval:
            raise ProviderError("Failed to create PayPal order")
        return ProviderOrder(id=data["id"], approval_url=approval, status=data.get("status", "CREATED"))

    def capture_order(self, provider_order_id: str) -> CaptureResult:
        resp = self._post(f"/v2/checkout/orders/{provider_order_id}/capture", {}, request_id=f"capture-{provider_order_id}")

        if resp.status_code == 404:
            raise ValidationError(f"Unknown payment order {provider_order_id}")
        if resp.status_code == 422:
            detail = _issue(resp)
            # a repeated capture reports ORDER_ALREADY_CAPTURED, fetch the order instead
            if detail == "ORDER_ALREADY_CAPTURED":
                return self._fetch(provider_order_id)
            raise ValidationError(f"Payment could not be captured: {detail}")
        if resp.status_code >= 400:
            logger.error(f"[PAYPAL CAPTURE] {resp.status_code}: {resp.text[:500]}")
            raise ProviderError("Failed to capture PayPal order")

        return self._to_capture(resp.json())

    @http_retry()
    def _fetch(self, provider_order_id: str) -> CaptureResult:
        url = f"{self.base_url}/v2/checkout/orders/{provider_order_id}"
        resp = requests.get(url, headers={"Authorization": f"Bearer {self._token()}"}, timeout=self.timeout)
        if resp.status_code == 404:
            raise ValidationError(f"Unknown payment order {provider_order_id}")
        if resp.status_code >= 400:
            raise ProviderError("Failed to read PayPal order")
        return self._to_capture(resp.json())

    @staticmethod
    def _to_capture(data: dict) -> CaptureResult:
        units = data.get("purchase_units") or [{}]
        captures = (units[0].get("payments") or {}).get("captures") or [{}]
        amount = captures[0].get("amount") or {}
        return CaptureResult(
            id=data.get("id", ""),
            status=data.get("status", ""),
            amount=Decimal(amount["value"]) if amount.get("value") else None,
            currency=amount.get("currency_code"),
            payer_email=(data.get("payer") or {}).get("email_address"),
        )
