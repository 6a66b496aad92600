from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from app.core.validators import validate_password_strength


class UserCreate(BaseModel):
    """Schema for creating a new user."""

    email: EmailStr
    password: str
    full_name: str | None = None
    company: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_strength(v)


class AccountSettings(BaseModel):
    """Editable account fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str | None
    email: str
    company: str | None


class AccountSettingsUpdate(BaseModel):
    full_name: str | None = None
    email: EmailStr | None = None
    company: str | None = None


class PasswordChange(BaseModel):
    """Password change request (requires current password)."""

    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return validate_password_strength(v)


class UserResponse(BaseModel):
    """Public user fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str | None
    company: str | None
    plan: str
    is_active: bool
    created_at: datetime


class DeactivatedResponse(BaseModel):
    id: int
    is_active: bool


class PlanResponse(BaseModel):
    plan: str


class PlanRequest(BaseModel):
    plan: str


class PlanUpdatedResponse(BaseModel):
    message: str
    plan: str


class UpgradeResponse(BaseModel):
    success: bool
    message: str
