"""
Seed one account per role plus a driver invite code.
Run from the project root: python scripts/create_test_users.py
"""
from courier_core.config.database import SessionLocal, engine
from courier_core.core.auth.service import AuthService
from courier_core.shared.database.models import Base, User, DriverInviteCode
from courier_core.shared.schemas.enums import UserRole

TEST_USERS = [
    {
        "email": "admin@courier.ca",
        "password": "admin123",
        "full_name": "Alex Admin",
        "phone": "+14165550100",
        "role": UserRole.ADMIN.value
    },
    {
        "email": "customer@courier.ca",
        "password": "customer123",
        "full_name": "Casey Customer",
        "phone": "+14165550101",
        "role": UserRole.CUSTOMER.value
    },
    {
        "email": "driver@courier.ca",
        "password": "driver123",
        "full_name": "Dana Driver",
        "phone": "+14165550102",
        "role": UserRole.DRIVER.value
    }
]

TEST_INVITE_CODE = "WELCOME-DRIVER"

def create_test_users():
    """Create test users for each role; skipped when users already exist"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        existing_users = db.query(User).count()
        if existing_users > 0:
            print(f"✅ {existing_users} users already exist")
            return

        admin = None
        for user_data in TEST_USERS:
            user = User(
                email=user_data["email"],
                password_hash=AuthService.get_password_hash(user_data["password"]),
                full_name=user_data["full_name"],
                phone=user_data["phone"],
                role=user_data["role"],
                is_active=True
            )
            db.add(user)
            db.flush()
            if user.role == UserRole.ADMIN.value:
                admin = user
            print(f"✅ {user_data['role']}: {user_data['email']} / {user_data['password']}")

        db.add(DriverInviteCode(code=TEST_INVITE_CODE, is_active=True, created_by=admin.id,
                                notes="Seeded test code"))
        db.commit()
        print(f"🎟️ Invite code: {TEST_INVITE_CODE}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error creating users: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_test_users()
