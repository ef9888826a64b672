# courier_core/modules/users/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import or_, desc
from typing import List, Optional

from courier_core.shared.database.models import User

class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_conflicting(self, email: str, phone: str) -> Optional[User]:
        return self.db.query(User).filter(
            or_(User.email == email, User.phone == phone)
        ).first()

    def add(self, **values) -> User:
        """Stage a new user. Does not commit."""
        user = User(**values)
        self.db.add(user)
        self.db.flush()
        return user

    def list_users(self, role: Optional[str] = None, active_only: bool = False) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.order_by(desc(User.created_at)).all()
