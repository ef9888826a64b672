# courier_core/modules/admin/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, List
from decimal import Decimal

from courier_core.shared.schemas.common import BaseResponse
from courier_core.shared.schemas.enums import OrderStatus
from courier_core.core.auth.schemas import UserResponse

class AssignDriverRequest(BaseModel):
    driver_id: str = Field(..., description="Driver to put on the order")
    expected_version: Optional[int] = Field(None, ge=1)

class ForceStatusRequest(BaseModel):
    target_status: OrderStatus = Field(..., description="Status to set")
    reason: Optional[str] = Field(None, max_length=1000, description="Why the override was needed")
    expected_version: Optional[int] = Field(None, ge=1)

    class Config:
        json_schema_extra = {
            "example": {
                "target_status": "picked_up",
                "reason": "Driver app was offline at pickup",
                "expected_version": 3
            }
        }

class UserListResponse(BaseResponse):
    users: List[UserResponse]
    count: int

class DashboardResponse(BaseResponse):
    orders_by_status: Dict[str, int]
    payments_by_status: Dict[str, int]
    total_orders: int
    unassigned_pending: int
    collected_amount: Decimal
    active_drivers: int
