import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from ..config import (
    PAYMENT_API_BASE, PAYMENT_API_TIMEOUT_SEC,
    EP_CREATE_PAYMENT, EP_ORDER_STATUS, EP_SIMULATE_CALLBACK,
)
from ..exceptions import PaymentsApiError
from ..schemas import OrderStatusResult, CreatePaymentResult, SimulateCallbackResponse

logger = logging.getLogger(__name__)

RESULT_CODE_SUCCESS = "00"
RESULT_CODE_FAILED = "02"


def _base(base: Optional[str]) -> str:
    return (base or PAYMENT_API_BASE).rstrip("/")

def _error_text(data: Any) -> str:
    if isinstance(data, dict):
        return str(data.get("error") or data.get("detail") or data.get("message") or data)
    return str(data)

async def _request(method: str, url: str, *, json: Optional[dict] = None) -> Any:
    timeout = aiohttp.ClientTimeout(total=PAYMENT_API_TIMEOUT_SEC)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as http:
            async with http.request(method, url, json=json, headers={"Content-Type": "application/json"}) as r:
                try:
                    data = await r.json(content_type=None)
                except ValueError:
                    data = None
                if r.status >= 400:
                    raise PaymentsApiError(f"{method} {url} -> {r.status}: {_error_text(data)}", status=r.status)
                if data is None:
                    raise PaymentsApiError(f"{method} {url}: malformed JSON body", status=r.status)
                return data
    except aiohttp.ClientError as e:
        raise PaymentsApiError(f"{method} {url}: {e}") from e
    except asyncio.TimeoutError as e:
        raise PaymentsApiError(f"{method} {url}: timeout after {PAYMENT_API_TIMEOUT_SEC}s") from e

async def get_order_status(order_id: str, *, base: Optional[str] = None) -> OrderStatusResult:
    url = f"{_base(base)}{EP_ORDER_STATUS}/{quote(order_id, safe='')}"
    data = await _request("GET", url)
    try:
        return OrderStatusResult.model_validate(data)
    except ValidationError as e:
        raise PaymentsApiError(f"GET {url}: unexpected body {data!r}") from e

async def create_payment(product_name: str, price: int, *, base: Optional[str] = None) -> CreatePaymentResult:
    url = f"{_base(base)}{EP_CREATE_PAYMENT}"
    data = await _request("POST", url, json={"productName": product_name, "price": int(price)})
    try:
        return CreatePaymentResult.model_validate(data)
    except ValidationError as e:
        raise PaymentsApiError(f"POST {url}: unexpected body {data!r}") from e

async def simulate_callback(order_id: str, result_code: str, *, base: Optional[str] = None) -> SimulateCallbackResponse:
    """Только для песочницы: вручную переключает статус заказа на бэкенде."""
    url = f"{_base(base)}{EP_SIMULATE_CALLBACK}"
    data = await _request("POST", url, json={"merchantOrderId": order_id, "resultCode": result_code})
    logger.info("Simulated callback %s for %s", result_code, order_id)
    try:
        return SimulateCallbackResponse.model_validate(data)
    except ValidationError:
        return SimulateCallbackResponse(message="Status updated")
