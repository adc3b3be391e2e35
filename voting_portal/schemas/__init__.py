"""Pydantic schemas package."""

from .auth import (
    EncodedTokenResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    VerifyCodeRequest,
)
from .ballot import AnnouncementRead, PublishedResultsRead, TallyRead, VoteCreate, VoteReceipt
from .subject import SeedAdminResponse, SubjectRead

__all__ = [
    "AnnouncementRead",
    "EncodedTokenResponse",
    "LoginRequest",
    "LoginResponse",
    "PublishedResultsRead",
    "RegisterRequest",
    "RegisterResponse",
    "SeedAdminResponse",
    "SubjectRead",
    "TallyRead",
    "TokenResponse",
    "VerifyCodeRequest",
    "VoteCreate",
    "VoteReceipt",
]
