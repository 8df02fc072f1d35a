import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from shanthi_store.models.user import UserRole

PASSWORD_RULES = (
    (r"[A-Z]", "Password must contain at least one uppercase letter"),
    (r"[a-z]", "Password must contain at least one lowercase letter"),
    (r"\d", "Password must contain at least one digit"),
)


class ShopperRegister(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    full_name: str = Field(alias="fullName", min_length=1, max_length=100)
    phone: Optional[str] = None
    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        for pattern, message in PASSWORD_RULES:
            if not re.search(pattern, v):
                raise ValueError(message)
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        # Indian mobile numbers, optionally prefixed with +91
        if v and not re.fullmatch(r"(\+91)?[6-9]\d{9}", v):
            raise ValueError("Phone must be a 10 digit mobile number")
        return v


class ShopperLogin(BaseModel):
    email: EmailStr
    password: str


class ShopperOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    email: str
    full_name: str = Field(serialization_alias="fullName")
    phone: Optional[str] = None
    role: UserRole
