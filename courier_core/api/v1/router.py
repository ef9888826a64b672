# courier_core/api/v1/router.py
from fastapi import APIRouter
from courier_core.api.v1.auth import router as auth_router
from courier_core.modules.orders.router import router as orders_router
from courier_core.modules.courier.router import router as courier_router
from courier_core.modules.payments.router import router as payments_router
from courier_core.modules.invite_codes.router import router as invite_codes_router
from courier_core.modules.admin import admin_router

# Main router for API v1
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    orders_router,
    prefix="/orders",
    tags=["Orders"]
)

api_router.include_router(
    courier_router,
    prefix="/courier",
    tags=["Courier Operations"]
)

api_router.include_router(
    payments_router,
    prefix="/payments",
    tags=["Payments"]
)

api_router.include_router(
    invite_codes_router,
    prefix="/invite-codes",
    tags=["Invite Codes"]
)

api_router.include_router(
    admin_router,
    prefix="/admin",
    tags=["Admin"]
)

@api_router.get("/")
async def api_root():
    """Root endpoint of the API"""
    return {
        "message": "Courier Core API v1",
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            "orders": "/api/v1/orders",
            "courier": "/api/v1/courier",
            "payments": "/api/v1/payments",
            "invite_codes": "/api/v1/invite-codes",
            "admin": "/api/v1/admin"
        }
    }

@api_router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "Courier Core API",
        "architecture": "modular_monolith",
        "modules": {
            "auth": {"status": "active", "features": ["JWT", "Roles", "Invite code signup"]},
            "orders": {"status": "active", "features": ["Pricing", "State machine", "History"]},
            "courier": {"status": "active", "features": ["Open board", "Accept", "Delivery proof"]},
            "payments": {"status": "active", "features": ["Collect", "Fail", "Refund"]},
            "admin": {"status": "active", "features": ["Assign driver", "Force status", "Invite codes"]}
        }
    }
