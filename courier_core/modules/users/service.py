# courier_core/modules/users/service.py
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging
import re

from courier_core.core.auth.service import AuthService
from courier_core.core.auth.schemas import SignUpRequest
from courier_core.core.exceptions import DuplicateAccount, ValidationError
from courier_core.shared.database.models import User
from courier_core.shared.schemas.enums import UserRole
from courier_core.modules.invite_codes.service import InviteCodeService
from .repository import UserRepository

logger = logging.getLogger(__name__)

# NANP: area code and exchange both start with 2-9
CANADIAN_PHONE = re.compile(r"^[2-9]\d{2}[2-9]\d{6}$")

def normalize_phone(raw: str) -> str:
    """Normalize a Canadian number to E.164 (+1XXXXXXXXXX)"""
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if not CANADIAN_PHONE.match(digits):
        raise ValidationError("Invalid Canadian phone number", {"phone": raw})
    return f"+1{digits}"

class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = UserRepository(db)

    def signup(self, data: SignUpRequest) -> User:
        """
        Create an account. With an invite code the account is created as a
        driver in the same transaction that consumes the code; if the code
        cannot be consumed no account is created.
        """
        phone = normalize_phone(data.phone)

        existing = self.repository.find_conflicting(data.email, phone)
        if existing:
            field = "email" if existing.email == data.email else "phone"
            raise DuplicateAccount(f"An account with this {field} already exists", {"field": field})

        try:
            user = self.repository.add(
                full_name=data.full_name,
                email=data.email,
                phone=phone,
                password_hash=AuthService.get_password_hash(data.password),
                role=UserRole.CUSTOMER.value,
                is_active=True
            )
            if data.invite_code:
                InviteCodeService(self.db).claim_for_user(data.invite_code, user.id)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateAccount("An account with this email or phone already exists")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"👤 Account {user.id} created with role {user.role}")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.repository.get_by_email(email.strip().lower())
        if not user or not AuthService.verify_password(password, user.password_hash):
            return None
        return user

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        return self.repository.list_users(UserRole(role).value if role else None)

    @staticmethod
    def issue_token(user: User) -> str:
        return AuthService.create_access_token(
            data={"user_id": user.id, "email": user.email, "role": user.role}
        )
