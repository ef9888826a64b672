# courier_core/modules/orders/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any, List
from decimal import Decimal
from datetime import datetime
from enum import Enum

from courier_core.shared.schemas.common import BaseResponse
from courier_core.shared.schemas.enums import (
    OrderEvent, OrderStatus, PackageSize, WeightBucket, DeliverySpeed,
    PaymentResponsibility, PaymentMethod, PaymentStatus
)
from .pricing import quantize_distance

class OrderListFilter(str, Enum):
    ALL = "all"
    BY_CUSTOMER = "by_customer"
    BY_DRIVER = "by_driver"
    BY_STATUS = "by_status"
    AVAILABLE = "available"
    DRIVER_ACTIVE = "driver_active"
    DRIVER_COMPLETED = "driver_completed"

class OrderSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    STATUS = "status"
    COST = "cost"
    CUSTOMER = "customer"

class PackageAttributes(BaseModel):
    size: PackageSize = Field(PackageSize.MEDIUM, description="Package size")
    weight: WeightBucket = Field(WeightBucket.UNDER_5KG, description="Weight bucket")
    fragile: bool = Field(False, description="Whether the package is fragile")
    speed: DeliverySpeed = Field(DeliverySpeed.STANDARD, description="Delivery speed")
    instructions: Optional[str] = Field(None, max_length=1000, description="Special instructions")

class RouteSnapshot(BaseModel):
    """Route data supplied by the mapping provider"""
    pickup_address: str = Field(..., min_length=1, max_length=500)
    dropoff_address: str = Field(..., min_length=1, max_length=500)
    distance_km: Decimal = Field(..., ge=0, description="Route distance in kilometres")
    eta_minutes: int = Field(..., ge=0, description="Estimated travel time in minutes")

    @validator('pickup_address', 'dropoff_address')
    def validate_address(cls, v):
        if not v.strip():
            raise ValueError('Address cannot be empty')
        return v.strip()

    @validator('distance_km')
    def round_distance(cls, v):
        return quantize_distance(v)

class QuoteRequest(BaseModel):
    distance_km: Decimal = Field(..., ge=0)
    package: PackageAttributes = Field(default_factory=PackageAttributes)

    @validator('distance_km')
    def round_distance(cls, v):
        return quantize_distance(v)

class QuoteResponse(BaseResponse):
    cost: Decimal
    distance_km: Decimal
    package: PackageAttributes

class OrderCreate(RouteSnapshot):
    package: PackageAttributes = Field(default_factory=PackageAttributes)
    payment_responsibility: PaymentResponsibility = Field(..., description="Who pays: sender or receiver")
    payment_method: PaymentMethod = Field(..., description="cash or card")

    class Config:
        json_schema_extra = {
            "example": {
                "pickup_address": "100 Queen St W, Toronto, ON",
                "dropoff_address": "1 Yonge St, Toronto, ON",
                "distance_km": 10,
                "eta_minutes": 25,
                "package": {
                    "size": "Medium",
                    "weight": "< 5kg",
                    "fragile": False,
                    "speed": "Standard",
                    "instructions": "Leave with concierge"
                },
                "payment_responsibility": "sender",
                "payment_method": "cash"
            }
        }

class StatusUpdateRequest(BaseModel):
    event: OrderEvent = Field(..., description="Lifecycle event to apply")
    expected_version: Optional[int] = Field(None, ge=1, description="Version the caller last observed")
    delivery_photo_ref: Optional[str] = Field(None, max_length=1000)
    delivery_notes: Optional[str] = Field(None, max_length=2000)
    reason: Optional[str] = Field(None, max_length=1000)
    target_status: Optional[OrderStatus] = Field(None, description="Only for force_set_status")

class CancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000, description="Cancellation reason")
    expected_version: Optional[int] = Field(None, ge=1)

    @validator('reason')
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError('The reason cannot be empty')
        return v.strip()

class OrderResponse(BaseModel):
    id: str
    customer_id: str
    driver_id: Optional[str] = None
    pickup_address: str
    dropoff_address: str
    distance_km: Decimal
    eta_minutes: int
    size: PackageSize
    weight: WeightBucket
    fragile: bool
    speed: DeliverySpeed
    instructions: Optional[str] = None
    cost: Decimal
    payment_responsibility: PaymentResponsibility
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    amount_collected: Optional[Decimal] = None
    paid_at: Optional[datetime] = None
    status: OrderStatus
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    delivery_photo_ref: Optional[str] = None
    delivery_notes: Optional[str] = None

    class Config:
        from_attributes = True

class OrderActionResponse(BaseResponse):
    order: OrderResponse
    next_step: Optional[str] = None
    allowed_events: List[OrderEvent] = Field(default_factory=list, description="Events the order accepts next")

class OrderListResponse(BaseResponse):
    orders: List[OrderResponse]
    count: int
    filter: OrderListFilter
    sort: OrderSort

class OrderEventResponse(BaseModel):
    id: int
    event: str
    from_status: Optional[str] = None
    to_status: str
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True

class OrderHistoryResponse(BaseResponse):
    order_id: str
    events: List[OrderEventResponse]
