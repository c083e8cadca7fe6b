# app/modules/payments/mercadopago_client.py
import httpx
import logging
from typing import Any, Dict, Optional
from fastapi import HTTPException

from app.config.settings import settings

logger = logging.getLogger(__name__)


class MercadoPagoClient:
    """Cliente HTTP para la API de MercadoPago (checkout, OAuth, Point Smart)"""

    def __init__(self, access_token: Optional[str] = None):
        self.base_url = settings.MERCADOPAGO_API_URL.rstrip("/")
        self.access_token = access_token
        self.timeout = settings.MERCADOPAGO_TIMEOUT

    def _get_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        request_headers = self._get_headers(headers)
        if data is not None:
            request_headers["Content-Type"] = "application/x-www-form-urlencoded"

        token_prefix = f"{self.access_token[:20]}..." if self.access_token else "sin token"
        logger.info(f"🔄 MercadoPago {method} {path} ({token_prefix})")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method, url, json=json, data=data, params=params, headers=request_headers
                )
        except httpx.TimeoutException:
            logger.error(f"❌ Timeout consultando MercadoPago: {method} {path}")
            raise HTTPException(status_code=504, detail="Timeout comunicándose con MercadoPago")
        except httpx.HTTPError as e:
            logger.error(f"❌ Error de red con MercadoPago: {str(e)}")
            raise HTTPException(status_code=502, detail=f"Error comunicándose con MercadoPago: {str(e)}")

        if response.status_code >= 400:
            logger.error(f"❌ MercadoPago respondió {response.status_code}: {response.text}")
            raise HTTPException(
                status_code=502,
                detail=f"Error de MercadoPago: {response.status_code} - {response.text}"
            )

        if not response.content:
            return {}
        return response.json()

    # ==================== CHECKOUT ====================

    async def create_preference(self, preference: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/checkout/preferences", json=preference)

    async def get_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v1/payments/{payment_id}")

    # ==================== OAUTH ====================

    async def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        return await self._request("POST", "/oauth/token", data={
            "client_id": settings.MERCADOPAGO_CLIENT_ID,
            "client_secret": settings.MERCADOPAGO_CLIENT_SECRET,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        })

    async def get_user_info(self) -> Dict[str, Any]:
        return await self._request("GET", "/users/me")

    # ==================== POINT SMART ====================

    async def create_order(self, order: Dict[str, Any], idempotency_key: str) -> Dict[str, Any]:
        return await self._request("POST", "/v1/orders", json=order, headers={"X-Idempotency-Key": idempotency_key})

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v1/orders/{order_id}")

    async def search_orders(self, terminal_id: str, status: str) -> Dict[str, Any]:
        return await self._request("GET", "/v1/orders/search", params={"terminal_id": terminal_id, "status": status})

    async def cancel_order(self, order_id: str, idempotency_key: str) -> Dict[str, Any]:
        return await self._request("POST", f"/v1/orders/{order_id}/cancel", headers={"X-Idempotency-Key": idempotency_key})

    async def get_action(self, action_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/terminals/v1/actions/{action_id}")
