# courier_core/modules/courier/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from courier_core.shared.schemas.common import BaseResponse
from courier_core.modules.orders.schemas import OrderResponse

class PickupConfirmation(BaseModel):
    expected_version: Optional[int] = Field(None, ge=1, description="Version the driver last observed")

class TransitStart(BaseModel):
    expected_version: Optional[int] = Field(None, ge=1)

class DeliveryConfirmation(BaseModel):
    delivery_photo_ref: Optional[str] = Field(None, max_length=1000, description="Reference returned by the photo upload")
    delivery_notes: Optional[str] = Field(None, max_length=2000, description="Delivery notes")
    expected_version: Optional[int] = Field(None, ge=1)

class AvailableOrdersResponse(BaseResponse):
    available_orders: List[OrderResponse]
    count: int
    breakdown: Dict[str, Any]
    courier_info: Dict[str, Any]

class MyOrdersResponse(BaseResponse):
    active_orders: List[OrderResponse]
    completed_orders: List[OrderResponse]
    count: int
    courier_stats: Dict[str, Any]

class DeliveryPhotoResponse(BaseResponse):
    order_id: str
    delivery_photo_ref: str
