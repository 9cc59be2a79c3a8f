import logging
from fastapi import APIRouter, Depends, HTTPException

from ...config import SANDBOX_PAYMENT_BASE
from ...schemas import (
    CreatePaymentRequest, CreatePaymentResult, OrderStatusResult,
    SimulateCallbackRequest, SimulateCallbackResponse,
)
from ..repositories.orders import OrdersRepo, get_orders_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["orders"])

@router.post("/create_payment", response_model=CreatePaymentResult, response_model_by_alias=True)
async def create_payment(payload: CreatePaymentRequest, orders: OrdersRepo = Depends(get_orders_repo)):
    order = orders.create_pending(payload.product_name, payload.price, SANDBOX_PAYMENT_BASE)
    logger.info("Sandbox order %s created for %s (%s)", order.merchant_order_id, payload.product_name, payload.price)
    return CreatePaymentResult(
        merchant_order_id=order.merchant_order_id,
        payment_url=order.payment_url,
        reference=order.reference,
    )

@router.get("/order_status/{merchant_order_id}", response_model=OrderStatusResult, response_model_by_alias=True)
async def order_status(merchant_order_id: str, orders: OrdersRepo = Depends(get_orders_repo)):
    order = orders.get(merchant_order_id)
    # found=true только после колбэка, до этого клиент продолжает опрос
    if order is None or not order.callback_received:
        return OrderStatusResult(found=False, merchant_order_id=merchant_order_id)
    return OrderStatusResult(
        found=True,
        status=order.status,
        merchant_order_id=order.merchant_order_id,
        reference=order.reference,
        amount=order.amount,
        payment_method=order.payment_method,
        status_message=order.status_message,
    )

@router.post("/simulate_callback", response_model=SimulateCallbackResponse)
async def simulate_callback(payload: SimulateCallbackRequest, orders: OrdersRepo = Depends(get_orders_repo)):
    order = orders.apply_callback(payload.merchant_order_id, payload.result_code)
    if order is None:
        raise HTTPException(404, "Order not found")
    logger.info("Sandbox callback %s -> %s", payload.merchant_order_id, order.status.value)
    return SimulateCallbackResponse(message=f"Order {order.merchant_order_id} marked {order.status.value}")
