# courier_core/modules/invite_codes/service.py
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from courier_core.core.exceptions import (
    NotFound, AlreadyUsed, CodeInactive, ValidationError
)
from courier_core.shared.database.models import DriverInviteCode, User
from courier_core.shared.schemas.enums import UserRole
from .repository import InviteCodeRepository

logger = logging.getLogger(__name__)

MIN_CODE_LENGTH = 3

def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()

class InviteCodeService:
    """Driver invite code registry"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = InviteCodeRepository(db)

    def validate(self, code: str) -> bool:
        """True iff the code exists, is active and unused"""
        normalized = normalize_code(code)
        if len(normalized) < MIN_CODE_LENGTH:
            return False
        invite = self.repository.get_by_code(normalized)
        return invite is not None and invite.is_valid

    def create(self, code: str, created_by: Optional[str], notes: Optional[str] = None) -> DriverInviteCode:
        normalized = normalize_code(code)
        if len(normalized) < MIN_CODE_LENGTH:
            raise ValidationError(
                f"Invite codes need at least {MIN_CODE_LENGTH} characters", {"code": normalized}
            )
        if self.repository.get_by_code(normalized):
            raise ValidationError("Invite code already exists", {"code": normalized})

        try:
            invite = self.repository.add(normalized, created_by, notes)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Invite code already exists", {"code": normalized})

        self.db.refresh(invite)
        logger.info(f"🎟️ Invite code {normalized} created by {created_by}")
        return invite

    def deactivate(self, code_id: str) -> DriverInviteCode:
        try:
            found = self.repository.deactivate(code_id)
            if not found:
                self.db.rollback()
                raise NotFound("Invite code", code_id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        invite = self.repository.get(code_id)
        logger.info(f"🎟️ Invite code {invite.code} deactivated")
        return invite

    def list_codes(self, only_valid: bool = False) -> List[DriverInviteCode]:
        return self.repository.list_codes(only_valid)

    def claim_for_user(self, code: str, user_id: str) -> None:
        """
        Consume ``code`` for ``user_id`` and promote the user to driver,
        without committing. Raises and leaves the caller to roll back when
        the code cannot be consumed.
        """
        normalized = normalize_code(code)
        if not self.repository.claim(normalized, user_id, datetime.now()):
            invite = self.repository.get_by_code(normalized)
            if invite is None:
                raise NotFound("Invite code", normalized)
            if invite.used_at is not None:
                raise AlreadyUsed(normalized)
            raise CodeInactive(normalized)

        if not self.repository.promote_to_driver(user_id):
            raise ValidationError(
                "Only customer accounts can be promoted to driver", {"user_id": user_id}
            )

    def consume(self, code: str, user: User) -> User:
        """Consume a code for an existing account; all or nothing"""
        if user.role != UserRole.CUSTOMER.value:
            raise ValidationError(
                "Only customer accounts can redeem a driver invite code", {"role": user.role}
            )

        user_id = user.id
        try:
            self.claim_for_user(code, user_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning(f"⚠️ Invite code {normalize_code(code)} could not be consumed by {user_id}")
            raise

        logger.info(f"🎟️ Invite code {normalize_code(code)} consumed - user {user_id} is now a driver")
        return self.db.query(User).filter(User.id == user_id).first()
