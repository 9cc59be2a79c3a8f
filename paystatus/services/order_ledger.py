import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from ..exceptions import StorageError
from ..schemas import LedgerOrder, LedgerStatus, OrderStatus, OrderStatusResult
from .payment_store import KeyValueStorage

logger = logging.getLogger(__name__)

ORDERS_KEY = "orders"

# итог опроса -> статус заказа в истории; PENDING историю не меняет
_POLL_TO_LEDGER = {
    OrderStatus.SUCCESS: LedgerStatus.PAID,
    OrderStatus.FAILED: LedgerStatus.FAILED,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderLedger:
    """
    История заказов одного чата: список заказов JSON-ом под ключом "orders".
    Читается из storage на каждый вызов, отдельной копии в памяти нет.
    """

    def __init__(self, storage: KeyValueStorage, *, now: Callable[[], datetime] = _utcnow):
        self.storage = storage
        self.now = now

    async def list_orders(self) -> list[LedgerOrder]:
        try:
            raw = await self.storage.get(ORDERS_KEY)
        except StorageError:
            logger.exception("Failed to read order ledger")
            return []
        if not raw:
            return []
        try:
            return [LedgerOrder.model_validate(item) for item in json.loads(raw)]
        except (ValueError, TypeError, ValidationError):
            logger.warning("Ignoring malformed order ledger: %r", raw)
            return []

    async def get(self, merchant_order_id: str) -> Optional[LedgerOrder]:
        for order in await self.list_orders():
            if order.merchant_order_id == merchant_order_id:
                return order
        return None

    async def save(self, merchant_order_id: str, product_name: str | None = None, amount: float | None = None) -> LedgerOrder:
        orders = [o for o in await self.list_orders() if o.merchant_order_id != merchant_order_id]
        order = LedgerOrder(
            merchant_order_id=merchant_order_id,
            product_name=product_name,
            amount=amount,
            status=LedgerStatus.PENDING,
            created_at=self.now(),
        )
        orders.append(order)
        await self._write(orders)
        return order

    async def update_status(self, merchant_order_id: str, status: LedgerStatus, **fields) -> bool:
        orders = await self.list_orders()
        for i, order in enumerate(orders):
            if order.merchant_order_id == merchant_order_id:
                changes = {k: v for k, v in fields.items() if v is not None}
                orders[i] = order.model_copy(update={**changes, "status": status, "last_updated": self.now()})
                await self._write(orders)
                return True
        return False

    async def apply_poll_result(self, merchant_order_id: str, data: OrderStatusResult) -> bool:
        status = _POLL_TO_LEDGER.get(data.status)
        if status is None:
            return False
        return await self.update_status(
            merchant_order_id, status,
            reference=data.reference,
            payment_method=data.payment_method,
            amount=data.amount,
        )

    async def _write(self, orders: list[LedgerOrder]) -> None:
        payload = json.dumps([o.model_dump(mode="json", by_alias=True) for o in orders])
        try:
            await self.storage.set(ORDERS_KEY, payload)
        except StorageError:
            logger.exception("Failed to save order ledger")
