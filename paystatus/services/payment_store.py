import json
import logging
import math
import time
from typing import Callable, Optional, Protocol

from ..config import PAYMENT_URL_TTL_MINUTES
from ..exceptions import StorageError
from ..schemas import PaymentLinkRecord

logger = logging.getLogger(__name__)

PAYMENT_DATA_KEY = "lastPaymentData"
CURRENT_ORDER_KEY = "currentOrderId"


class KeyValueStorage(Protocol):
    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, *keys: str) -> None: ...


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class PaymentStore:
    """
    Последняя выданная ссылка на оплату (с абсолютным сроком жизни) и id текущего заказа.

    Основная копия живёт в памяти, зеркало пишется в storage, чтобы после
    перезапуска можно было поднять состояние через load(). Ошибки зеркала
    только логируются: копия в памяти остаётся рабочей.
    """

    def __init__(self, storage: KeyValueStorage, *, clock: Callable[[], int] = _epoch_ms):
        self.storage = storage
        self.clock = clock
        self._link: Optional[PaymentLinkRecord] = None
        self._order_id: Optional[str] = None

    async def load(self) -> None:
        try:
            raw = await self.storage.get(PAYMENT_DATA_KEY)
            order_id = await self.storage.get(CURRENT_ORDER_KEY)
        except StorageError:
            logger.exception("Failed to load payment store from storage")
            return

        if raw:
            try:
                data = json.loads(raw)
                if data.get("url") and data.get("expiry"):
                    self._link = PaymentLinkRecord(url=data["url"], expires_at_ms=int(data["expiry"]))
            except (ValueError, TypeError, AttributeError):
                logger.warning("Ignoring malformed %s: %r", PAYMENT_DATA_KEY, raw)
        if order_id:
            self._order_id = order_id

    async def set_payment_url(self, url: str, ttl_minutes: int = PAYMENT_URL_TTL_MINUTES) -> None:
        self._link = PaymentLinkRecord(url=url, expires_at_ms=self.clock() + ttl_minutes * 60 * 1000)
        payload = json.dumps({"url": self._link.url, "expiry": self._link.expires_at_ms})
        try:
            await self.storage.set(PAYMENT_DATA_KEY, payload)
        except StorageError:
            logger.exception("Failed to save payment URL to storage")

    def get_payment_url(self) -> Optional[str]:
        if self.is_payment_url_expired():
            return None
        return self._link.url

    def is_payment_url_expired(self) -> bool:
        return self._link is None or self.clock() > self._link.expires_at_ms

    def remaining_seconds(self) -> int:
        if self._link is None:
            return 0
        remaining_ms = self._link.expires_at_ms - self.clock()
        return max(0, math.floor(remaining_ms / 1000))

    @property
    def payment_link(self) -> Optional[PaymentLinkRecord]:
        return self._link

    async def set_current_order_id(self, order_id: str) -> None:
        self._order_id = order_id
        try:
            await self.storage.set(CURRENT_ORDER_KEY, order_id)
        except StorageError:
            logger.exception("Failed to save order id to storage")

    def get_current_order_id(self) -> Optional[str]:
        return self._order_id

    async def clear(self) -> None:
        self._link = None
        self._order_id = None
        try:
            await self.storage.delete(PAYMENT_DATA_KEY, CURRENT_ORDER_KEY)
        except StorageError:
            logger.exception("Failed to clear payment data from storage")
