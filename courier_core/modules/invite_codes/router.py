# courier_core/modules/invite_codes/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from courier_core.config.database import get_db
from courier_core.core.auth.dependencies import get_current_user
from .service import InviteCodeService, normalize_code
from .schemas import InviteCodeConsume, InviteCodeValidationResponse, InviteCodeConsumeResponse

router = APIRouter()

@router.get("/validate", response_model=InviteCodeValidationResponse)
async def validate_invite_code(
    code: str = Query(..., description="Invite code as typed by the user"),
    db: Session = Depends(get_db)
):
    """
    Check an invite code before signup

    Public endpoint: the signup screen calls it before an account exists.
    A valid answer is not a reservation; the code is only consumed at signup.
    """
    valid = InviteCodeService(db).validate(code)
    return InviteCodeValidationResponse(
        success=True,
        message="Invite code is valid" if valid else "Invite code is invalid or already used",
        code=normalize_code(code),
        valid=valid
    )

@router.post("/consume", response_model=InviteCodeConsumeResponse)
async def consume_invite_code(
    payload: InviteCodeConsume,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Redeem a code with an existing customer account to become a driver"""
    user = InviteCodeService(db).consume(payload.code, current_user)
    return InviteCodeConsumeResponse(
        success=True,
        message="Invite code accepted, driver role granted",
        user_id=user.id,
        role=user.role
    )
