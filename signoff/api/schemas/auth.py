"""Pydantic schemas for authentication and roster endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from signoff.domain.models import Company


class LoginRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=12, description="Employee id")
    password: str = Field(..., description="Account password")


class RegisterRequest(BaseModel):
    """Self-registration or admin-created roster entry."""

    user_id: str = Field(..., pattern=r"^\d{8}(\d{4})?$", description="8 or 12 digit id")
    name: str = Field(..., min_length=1, max_length=128)
    part: str = Field(default="N/A", max_length=128)
    group: str = Field(default="N/A", max_length=128)
    company: Company
    password: str | None = Field(None, min_length=6, max_length=72)

    @model_validator(mode="after")
    def check_id_matches_company(self) -> RegisterRequest:
        if len(self.user_id) != self.company.id_length:
            raise ValueError(
                f"{self.company.value} ids must be {self.company.id_length} digits"
            )
        return self


class ImportRow(BaseModel):
    id: str = Field(..., min_length=1, max_length=12)
    name: str = Field(..., min_length=1)
    part: str | None = None
    group: str | None = None


class ImportRequest(BaseModel):
    rows: list[ImportRow]


class ImportResponse(BaseModel):
    created: list[str]
    skipped: list[str]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseModel):
    id: str
    name: str
    part: str
    group: str
    company: str
    role: str
    created_at: datetime | None = None


class UsersResponse(BaseModel):
    users: list[UserResponse]


class LoginResponse(BaseModel):
    message: str
    user: UserResponse
    tokens: TokenResponse


class MeResponse(BaseModel):
    user: UserResponse
