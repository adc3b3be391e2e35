"""Schemas for registration and login endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, field_validator


def _normalize_identifier(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("identifier must not be blank")
    return value


Identifier = Annotated[str, Field(min_length=1, max_length=64), AfterValidator(_normalize_identifier)]


class RegisterRequest(BaseModel):
    identifier: Identifier
    contact: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)

    @field_validator("contact")
    @classmethod
    def _require_address(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("contact must be an email address")
        return value.strip()


class RegisterResponse(BaseModel):
    message: str = "Registered successfully"
    identifier: str


class LoginRequest(BaseModel):
    identifier: Identifier
    password: str = Field(..., max_length=256)
    admin_key: str | None = Field(default=None, max_length=256)


class LoginResponse(BaseModel):
    message: str = "CODE_SENT"
    identifier: str
    expires_at: datetime


class VerifyCodeRequest(BaseModel):
    identifier: Identifier
    code: str = Field(..., max_length=16)

    @field_validator("code")
    @classmethod
    def _strip_code(cls, value: str) -> str:
        return value.strip()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    expires_at: datetime


class EncodedTokenResponse(BaseModel):
    encoded: str
    decoded: str


__all__ = [
    "EncodedTokenResponse",
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
    "VerifyCodeRequest",
]
