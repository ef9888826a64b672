# courier_core/modules/admin/router.py
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from courier_core.config.database import get_db
from courier_core.core.auth.dependencies import get_admin_user
from courier_core.core.auth.schemas import UserResponse
from courier_core.shared.database.models import User
from courier_core.shared.schemas.enums import OrderStatus, UserRole
from courier_core.modules.orders.router import order_action_response
from courier_core.modules.orders.schemas import (
    OrderActionResponse, OrderListResponse, OrderResponse, OrderListFilter, OrderSort
)
from courier_core.modules.invite_codes.schemas import (
    InviteCodeCreate, InviteCodeResponse, InviteCodeActionResponse, InviteCodeListResponse
)
from .service import AdminService
from .schemas import AssignDriverRequest, ForceStatusRequest, UserListResponse, DashboardResponse

router = APIRouter()

# ==================== ORDERS ====================

@router.post("/orders/{order_id}/assign-driver", response_model=OrderActionResponse)
async def assign_driver(
    assignment: AssignDriverRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """
    Put a driver on an order

    **Behaviour:**
    - A pending order becomes assigned
    - An order already in progress keeps its status; only the driver changes
    - Terminal orders are rejected
    """
    service = AdminService(db)
    order = await service.assign_driver(order_id, assignment.driver_id, current_user, assignment.expected_version)
    return order_action_response(order, "Driver assigned")

@router.post("/orders/{order_id}/force-status", response_model=OrderActionResponse)
async def force_status(
    override: ForceStatusRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """
    Override an order status

    Bypasses the transition table and the payment gate. The previous
    values are kept in the order history.
    """
    service = AdminService(db)
    order = await service.force_status(
        order_id, override.target_status, current_user, override.reason, override.expected_version
    )
    return order_action_response(order, f"Status set to {override.target_status.value}")

@router.get("/orders", response_model=OrderListResponse)
async def list_all_orders(
    filter: OrderListFilter = Query(OrderListFilter.ALL),
    sort: OrderSort = Query(OrderSort.NEWEST),
    search: Optional[str] = Query(None, description="Matches addresses, customer or driver name"),
    status: Optional[OrderStatus] = Query(None),
    customer_id: Optional[str] = Query(None),
    driver_id: Optional[str] = Query(None),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    service = AdminService(db)
    orders = service.list_orders(current_user, filter, sort, search, status, customer_id, driver_id)
    return OrderListResponse(
        success=True,
        message=f"{len(orders)} orders",
        orders=[OrderResponse.model_validate(o) for o in orders],
        count=len(orders),
        filter=filter,
        sort=sort
    )

@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Order and payment counters for the operations dashboard"""
    service = AdminService(db)
    return DashboardResponse(success=True, message="Operations dashboard", **service.dashboard())

# ==================== USERS ====================

@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    service = AdminService(db)
    users = service.list_users(role)
    return UserListResponse(
        success=True,
        message=f"{len(users)} users",
        users=[UserResponse.model_validate(u) for u in users],
        count=len(users)
    )

# ==================== INVITE CODES ====================

@router.post("/invite-codes", response_model=InviteCodeActionResponse, status_code=status.HTTP_201_CREATED)
async def create_invite_code(
    payload: InviteCodeCreate,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Issue a one-time driver invite code. Codes are stored upper-case."""
    service = AdminService(db)
    invite = service.create_invite_code(payload.code, current_user, payload.notes)
    return InviteCodeActionResponse(
        success=True,
        message="Invite code created",
        invite_code=InviteCodeResponse.model_validate(invite)
    )

@router.get("/invite-codes", response_model=InviteCodeListResponse)
async def list_invite_codes(
    only_valid: bool = Query(False, description="Only active, unused codes"),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    service = AdminService(db)
    codes = service.list_invite_codes(only_valid)
    return InviteCodeListResponse(
        success=True,
        message=f"{len(codes)} invite codes",
        invite_codes=[InviteCodeResponse.model_validate(c) for c in codes],
        count=len(codes)
    )

@router.post("/invite-codes/{code_id}/deactivate", response_model=InviteCodeActionResponse)
async def deactivate_invite_code(
    code_id: str = Path(..., description="Invite code ID"),
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Deactivate a code. Deactivating an inactive code is a no-op."""
    service = AdminService(db)
    invite = service.deactivate_invite_code(code_id)
    return InviteCodeActionResponse(
        success=True,
        message="Invite code deactivated",
        invite_code=InviteCodeResponse.model_validate(invite)
    )
