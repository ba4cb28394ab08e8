from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from app.db.models import DEFAULT_ROLE
from app.schemas.common import CamelModel, InputModel, UtcDatetime


class UserCreate(InputModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: str
    email: EmailStr
    role: str = Field(DEFAULT_ROLE, min_length=1, max_length=50)


class UserUpdate(InputModel):
    username: Optional[str] = Field(None, min_length=1)
    password: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[str] = Field(None, min_length=1, max_length=50)

    @field_validator("username", "password", "name", "email", "role")
    @classmethod
    def not_null(cls, value):
        # ausente = no se toca; null explícito no es válido
        if value is None:
            raise ValueError("must not be null")
        return value


class UserSummary(CamelModel):
    """Proyección usada en el listado y al enriquecer préstamos."""

    id: str
    name: str
    username: str
    email: str


class UserRead(UserSummary):
    role: str
    created_at: UtcDatetime


class UserResponse(CamelModel):
    success: bool = True
    user: UserRead


class UserListResponse(CamelModel):
    success: bool = True
    users: List[UserSummary]
