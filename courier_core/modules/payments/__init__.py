# courier_core/modules/payments/__init__.py
"""
Payments module - payment gate

Tracks who pays (sender or receiver), how (cash or card) and whether the
payment was collected, and blocks pickup/delivery until the obligated
party has paid. No payment processor is integrated.

Architecture:
- gate.py: payment rules used by the order state machine
- service.py: collect / fail / refund operations
- router.py: payment endpoints
- schemas.py: request/response models
"""

from .gate import payment_precondition, is_payment_due, PAYABLE_STATUSES

__all__ = [
    "payment_precondition",
    "is_payment_due",
    "PAYABLE_STATUSES"
]
