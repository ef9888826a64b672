# courier_core/modules/invite_codes/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_, update, desc
from typing import List, Optional
from datetime import datetime

from courier_core.shared.database.models import DriverInviteCode, User
from courier_core.shared.schemas.enums import UserRole

class InviteCodeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> Optional[DriverInviteCode]:
        return self.db.query(DriverInviteCode).filter(DriverInviteCode.code == code).first()

    def get(self, code_id: str) -> Optional[DriverInviteCode]:
        return self.db.query(DriverInviteCode).filter(DriverInviteCode.id == code_id).first()

    def list_codes(self, only_valid: bool = False) -> List[DriverInviteCode]:
        query = self.db.query(DriverInviteCode)
        if only_valid:
            query = query.filter(and_(
                DriverInviteCode.is_active.is_(True),
                DriverInviteCode.used_at.is_(None)
            ))
        return query.order_by(desc(DriverInviteCode.created_at)).all()

    def add(self, code: str, created_by: Optional[str], notes: Optional[str]) -> DriverInviteCode:
        """Stage a new code. Does not commit."""
        invite = DriverInviteCode(
            code=code,
            is_active=True,
            created_by=created_by,
            notes=notes,
            created_at=datetime.now()
        )
        self.db.add(invite)
        self.db.flush()
        return invite

    def claim(self, code: str, user_id: str, now: Optional[datetime] = None) -> bool:
        """
        Compare-and-swap used_at from NULL to now, only while the code is active.
        Does not commit; the caller commits together with the role change.
        """
        stmt = (
            update(DriverInviteCode)
            .where(and_(
                DriverInviteCode.code == code,
                DriverInviteCode.is_active.is_(True),
                DriverInviteCode.used_at.is_(None)
            ))
            .values(used_at=now or datetime.now(), used_by=user_id)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def promote_to_driver(self, user_id: str) -> bool:
        """Elevate a customer to driver. Does not commit."""
        stmt = (
            update(User)
            .where(and_(User.id == user_id, User.role == UserRole.CUSTOMER.value))
            .values(role=UserRole.DRIVER.value, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def deactivate(self, code_id: str) -> bool:
        """Does not commit."""
        stmt = (
            update(DriverInviteCode)
            .where(DriverInviteCode.id == code_id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1
