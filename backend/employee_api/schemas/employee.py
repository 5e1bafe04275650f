from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


def _strip_required(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ============ Request Schemas ============

class EmployeeCreate(BaseModel):
    nip: str = Field(..., max_length=20, description="Business identifier, unique per employee")
    name: str = Field(..., max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    position: str = Field(..., max_length=100)
    department: str = Field(..., max_length=100)
    salary: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    hire_date: str = Field(..., description="Hire date in YYYY-MM-DD format")

    @field_validator("nip", "name", "position", "department", mode="before")
    @classmethod
    def _required_not_blank(cls, value):
        return _strip_required(value)

    @field_validator("phone", mode="before")
    @classmethod
    def _normalize_phone(cls, value):
        return _blank_to_none(value)


class EmployeeUpdate(BaseModel):
    """
    Partial update. Only the fields present in the request body are applied,
    so falsy values such as ``salary=0`` or ``is_active=false`` are real updates.
    ``null`` clears ``phone`` and ``salary``.
    """

    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    salary: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    is_active: Optional[bool] = None

    @field_validator("name", "position", "department", mode="before")
    @classmethod
    def _required_not_blank(cls, value):
        return _strip_required(value)

    @field_validator("phone", mode="before")
    @classmethod
    def _normalize_phone(cls, value):
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _reject_null_for_required(self):
        for name in ("name", "email", "position", "department", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def provided_fields(self) -> Dict[str, Any]:
        """Fields explicitly present in the request, with their values."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class EmployeeFilter(BaseModel):
    department: Optional[str] = None
    position: Optional[str] = None
    is_active: Optional[bool] = None
    search: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    @field_validator("department", "position", "search", mode="before")
    @classmethod
    def _empty_means_absent(cls, value):
        return _blank_to_none(value)


# ============ Response Schemas ============

class EmployeeResponse(BaseModel):
    id: int
    nip: str
    name: str
    email: str
    phone: Optional[str] = None
    position: str
    department: str
    salary: Optional[float] = None
    hire_date: date
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EmployeeListResponse(BaseModel):
    employees: List[EmployeeResponse]
    total: int
    limit: int
    offset: int
