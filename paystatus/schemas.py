from datetime import datetime
from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class OrderStatusResult(BaseModel):
    """Ответ GET /api/order_status/{merchantOrderId}."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    found: bool = False
    status: OrderStatus = OrderStatus.PENDING
    merchant_order_id: Optional[str] = Field(default=None, alias="merchantOrderId")
    reference: Optional[str] = None
    amount: Optional[float] = None
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    status_message: Optional[str] = Field(default=None, alias="statusMessage")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        if isinstance(v, OrderStatus):
            return v
        # неизвестный статус показываем как "в обработке"
        v = str(v or "").upper()
        return v if v in OrderStatus.__members__ else OrderStatus.PENDING


class CreatePaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_name: str = Field(alias="productName", min_length=1)
    price: int = Field(gt=0)


class CreatePaymentResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    merchant_order_id: Optional[str] = Field(default=None, alias="merchantOrderId")
    payment_url: Optional[str] = Field(default=None, alias="paymentUrl")
    reference: Optional[str] = None


class SimulateCallbackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    merchant_order_id: str = Field(alias="merchantOrderId", min_length=1)
    result_code: str = Field(alias="resultCode")


class SimulateCallbackResponse(BaseModel):
    message: str


class PaymentLinkRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    expires_at_ms: int


class LegacyOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    result: Literal["SUCCESS", "FAILED", "UNKNOWN"]
    reference: Optional[str] = None
    amount: Optional[str] = None


class LedgerStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    PROCESSING = "PROCESSING"
    FULFILLED = "FULFILLED"
    FAILED = "FAILED"


class LedgerOrder(BaseModel):
    """Запись в истории заказов чата."""
    model_config = ConfigDict(populate_by_name=True)

    merchant_order_id: str = Field(alias="merchantOrderId")
    product_name: Optional[str] = Field(default=None, alias="productName")
    amount: Optional[float] = None
    status: LedgerStatus = LedgerStatus.PENDING
    reference: Optional[str] = None
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    created_at: datetime = Field(alias="createdAt")
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")
