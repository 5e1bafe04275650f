from datetime import datetime

from pydantic import BaseModel, Field

from employee_api.schemas.user import UserInfo


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    user: UserInfo
    expires_at: datetime
