# courier_core/modules/invite_codes/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from courier_core.shared.schemas.common import BaseResponse
from courier_core.shared.schemas.enums import UserRole

class InviteCodeCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=64, description="Code handed to the future driver")
    notes: Optional[str] = Field(None, max_length=500)

class InviteCodeConsume(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)

class InviteCodeResponse(BaseModel):
    id: str
    code: str
    is_active: bool
    used_at: Optional[datetime] = None
    used_by: Optional[str] = None
    created_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class InviteCodeValidationResponse(BaseResponse):
    code: str
    valid: bool

class InviteCodeConsumeResponse(BaseResponse):
    user_id: str
    role: UserRole

class InviteCodeActionResponse(BaseResponse):
    invite_code: InviteCodeResponse

class InviteCodeListResponse(BaseResponse):
    invite_codes: List[InviteCodeResponse]
    count: int
