
from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    # Strength is enforced by the auth service so the policy lives in one place
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True
