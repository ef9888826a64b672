# courier_core/modules/payments/schemas.py
from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

from courier_core.shared.schemas.common import BaseResponse
from courier_core.shared.schemas.enums import PaymentStatus
from courier_core.modules.orders.schemas import OrderResponse

class CollectPaymentRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount collected by the driver")
    expected_version: Optional[int] = Field(None, ge=1)

class PaymentFailureRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Why the collection failed")
    expected_version: Optional[int] = Field(None, ge=1)

class RefundRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    expected_version: Optional[int] = Field(None, ge=1)

class PaymentActionResponse(BaseResponse):
    order: OrderResponse
    payment_status: PaymentStatus
    already_recorded: bool = False
