import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ...schemas import OrderStatus


@dataclass
class SandboxOrder:
    merchant_order_id: str
    product_name: str
    amount: int
    reference: str
    payment_url: str
    status: OrderStatus = OrderStatus.PENDING
    callback_received: bool = False
    result_code: Optional[str] = None
    status_message: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class OrdersRepo:
    """Заказы песочницы в памяти процесса."""

    def __init__(self):
        self._orders: dict[str, SandboxOrder] = {}

    def create_pending(self, product_name: str, amount: int, payment_base: str) -> SandboxOrder:
        order_id = f"ORD-{uuid.uuid4().hex[:10].upper()}"
        reference = f"REF{uuid.uuid4().hex[:12].upper()}"
        order = SandboxOrder(
            merchant_order_id=order_id,
            product_name=product_name,
            amount=amount,
            reference=reference,
            payment_url=f"{payment_base}/{reference}",
        )
        self._orders[order_id] = order
        return order

    def get(self, merchant_order_id: str) -> Optional[SandboxOrder]:
        return self._orders.get(merchant_order_id)

    def apply_callback(self, merchant_order_id: str, result_code: str) -> Optional[SandboxOrder]:
        order = self._orders.get(merchant_order_id)
        if order is None:
            return None
        order.callback_received = True
        order.result_code = result_code
        if result_code == "00":
            order.status = OrderStatus.SUCCESS
            order.status_message = "Payment confirmed"
            order.payment_method = "VC"
        else:
            order.status = OrderStatus.FAILED
            order.status_message = f"Payment rejected (resultCode {result_code})"
        return order


_repo: OrdersRepo | None = None

def get_orders_repo() -> OrdersRepo:
    global _repo
    if _repo is None:
        _repo = OrdersRepo()
    return _repo
