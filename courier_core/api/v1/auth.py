from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from courier_core.config.database import get_db
from courier_core.core.auth.schemas import UserLogin, SignUpRequest, TokenResponse, UserResponse
from courier_core.core.auth.dependencies import get_current_user, AuthenticationError, AuthorizationError
from courier_core.modules.users.service import UserService
from courier_core.shared.database.models import User

router = APIRouter()

def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=UserService.issue_token(user),
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )

def _login(db: Session, email: str, password: str) -> TokenResponse:
    user = UserService(db).authenticate(email, password)

    if not user:
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        raise AuthorizationError("Inactive user")

    return _token_response(user)

@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignUpRequest,
    db: Session = Depends(get_db)
):
    """
    Create an account and return an access token

    **Roles:**
    - Without an invite code the account is a customer
    - With a valid invite code the account is a driver; if the code is
      unknown, inactive or already used, no account is created
    """
    user = UserService(db).signup(payload)
    return _token_response(user)

@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Login to obtain an access token

    **Parameters:**
    - **username**: user email
    - **password**: user password
    """
    return _login(db, form_data.username, form_data.password)

@router.post("/login-json", response_model=TokenResponse)
async def login_json(
    user_login: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Alternative login that accepts JSON

    **Body:**
    ```json
        {
            "email": "user@example.com",
            "password": "password123"
        }
    ```
    """
    return _login(db, user_login.email, user_login.password)

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Current user profile. The role is read from the store on every request."""
    return UserResponse.model_validate(current_user)
