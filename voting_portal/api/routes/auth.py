"""Registration and two-step login endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials

from voting_portal.api.deps import get_current_identity, get_services, http_error, security_scheme
from voting_portal.schemas.auth import (
    EncodedTokenResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    VerifyCodeRequest,
)
from voting_portal.security.crypto import decode_text, encode_text
from voting_portal.services.container import VotingServices
from voting_portal.services.credentials import Identity
from voting_portal.services.errors import VotingError

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a student account",
)
def register(request: RegisterRequest, services: VotingServices = Depends(get_services)) -> RegisterResponse:
    try:
        subject = services.credentials.register(request.identifier, request.contact, request.password)
    except VotingError as exc:
        raise http_error(exc) from exc
    return RegisterResponse(identifier=subject.identifier)


@router.post("/login", response_model=LoginResponse, summary="Check the password and email a login code")
def login(request: LoginRequest, services: VotingServices = Depends(get_services)) -> LoginResponse:
    try:
        challenge = services.credentials.begin_login(request.identifier, request.password, request.admin_key)
    except VotingError as exc:
        raise http_error(exc) from exc
    return LoginResponse(identifier=challenge.identifier, expires_at=challenge.expires_at)


@router.post("/verify-code", response_model=TokenResponse, summary="Exchange a login code for a session token")
def verify_code(request: VerifyCodeRequest, services: VotingServices = Depends(get_services)) -> TokenResponse:
    try:
        token = services.credentials.complete_login(request.identifier, request.code)
    except VotingError as exc:
        raise http_error(exc) from exc
    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        role=token.role,
        expires_at=token.expires_at,
    )


@router.get("/encoded-token", response_model=EncodedTokenResponse, summary="Show the bearer token text-encoded")
def encoded_token(
    _: Identity = Depends(get_current_identity),
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> EncodedTokenResponse:
    token = credentials.credentials if credentials else ""
    encoded = encode_text(token)
    return EncodedTokenResponse(encoded=encoded, decoded=decode_text(encoded, encoding="utf-8"))


__all__ = ["encoded_token", "login", "register", "router", "verify_code"]
