import logging
from typing import Optional

from ..config import PAYMENT_URL_TTL_MINUTES
from ..exceptions import PaymentsApiError, PaymentLinkExpired
from ..schemas import CreatePaymentResult
from .order_ledger import OrderLedger
from .payment_store import PaymentStore
from .payments_api import create_payment

logger = logging.getLogger(__name__)


async def start_checkout(
    store: PaymentStore, product_name: str, price: int, *,
    ledger: Optional[OrderLedger] = None,
    ttl_minutes: int = PAYMENT_URL_TTL_MINUTES, base: Optional[str] = None,
) -> CreatePaymentResult:
    """
    Создаёт платёж на бэкенде и запоминает ссылку, чтобы к ней можно было вернуться.
    """
    if not product_name or not price:
        raise ValueError("product_name and price are required")

    result = await create_payment(product_name, price, base=base)
    if not result.payment_url:
        raise PaymentsApiError("Payment URL missing in create_payment response")

    if result.merchant_order_id:
        await store.set_current_order_id(result.merchant_order_id)
        await store.set_payment_url(result.payment_url, ttl_minutes)
        if ledger is not None:
            await ledger.save(result.merchant_order_id, product_name, price)
    logger.info("Checkout started: order=%s product=%s price=%s",
                result.merchant_order_id, product_name, price)
    return result

async def return_to_payment(store: PaymentStore) -> str:
    url = store.get_payment_url()
    if url:
        return url
    # ссылка истекла или её нет: чистим всё и отправляем оформлять заново
    await store.clear()
    raise PaymentLinkExpired("Payment URL expired or not found")
