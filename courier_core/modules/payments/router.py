# courier_core/modules/payments/router.py
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from courier_core.config.database import get_db
from courier_core.core.auth.dependencies import require_roles
from courier_core.shared.schemas.enums import UserRole
from courier_core.modules.orders.schemas import OrderResponse
from .service import PaymentService
from .schemas import CollectPaymentRequest, PaymentFailureRequest, RefundRequest, PaymentActionResponse

router = APIRouter()

def payment_response(order, already_recorded: bool, message: str) -> PaymentActionResponse:
    return PaymentActionResponse(
        success=True,
        message=message,
        order=OrderResponse.model_validate(order),
        payment_status=order.payment_status,
        already_recorded=already_recorded
    )

@router.post("/{order_id}/collect", response_model=PaymentActionResponse)
async def collect_payment(
    payment: CollectPaymentRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(require_roles([UserRole.DRIVER.value, UserRole.ADMIN.value])),
    db: Session = Depends(get_db)
):
    """
    Record a cash/card collection

    **Rules:**
    - Only while the order is assigned, picked up or in transit
    - Idempotent: collecting an already paid order succeeds without changes
    - Amount must cover the order cost
    """
    service = PaymentService(db)
    order, already = await service.collect_payment(order_id, payment.amount, current_user, payment.expected_version)
    return payment_response(order, already, "Payment already recorded" if already else "Payment collected")

@router.post("/{order_id}/fail", response_model=PaymentActionResponse)
async def mark_payment_failed(
    failure: PaymentFailureRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(require_roles([UserRole.DRIVER.value, UserRole.ADMIN.value])),
    db: Session = Depends(get_db)
):
    """Record that the obligated party could not pay"""
    service = PaymentService(db)
    order, already = await service.mark_failed(order_id, current_user, failure.reason, failure.expected_version)
    return payment_response(order, already, "Payment marked as failed")

@router.post("/{order_id}/refund", response_model=PaymentActionResponse)
async def refund_payment(
    refund: RefundRequest,
    order_id: str = Path(..., description="Order ID"),
    current_user = Depends(require_roles([UserRole.ADMIN.value])),
    db: Session = Depends(get_db)
):
    """Record a refund on a paid order (admin only)"""
    service = PaymentService(db)
    order, already = await service.mark_refunded(order_id, current_user, refund.reason, refund.expected_version)
    return payment_response(order, already, "Payment refunded")
