from paystatus.schemas import OrderStatus, OrderStatusResult


def test_status_is_normalised():
    assert OrderStatusResult.model_validate({"found": True, "status": "success"}).status is OrderStatus.SUCCESS
    assert OrderStatusResult(status=OrderStatus.FAILED).status is OrderStatus.FAILED

def test_unknown_status_reads_as_pending():
    assert OrderStatusResult.model_validate({"found": True, "status": "EXPIRED"}).status is OrderStatus.PENDING
    assert OrderStatusResult.model_validate({"found": True, "status": None}).status is OrderStatus.PENDING

def test_missing_fields_default():
    data = OrderStatusResult.model_validate({})
    assert data.found is False
    assert data.status is OrderStatus.PENDING
    assert data.reference is None

def test_dump_uses_wire_names():
    data = OrderStatusResult(found=True, status="SUCCESS", payment_method="VC", status_message="ok")
    dumped = data.model_dump(by_alias=True, mode="json")
    assert dumped["paymentMethod"] == "VC"
    assert dumped["statusMessage"] == "ok"
    assert dumped["status"] == "SUCCESS"
