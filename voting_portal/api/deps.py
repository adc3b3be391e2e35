"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from voting_portal.services.access_control import Action, is_allowed
from voting_portal.services.container import VotingServices
from voting_portal.services.credentials import Identity
from voting_portal.services.errors import (
    AlreadyVoted,
    CodeInvalid,
    DeliveryFailed,
    DuplicateIdentifier,
    Forbidden,
    FormatError,
    IntegrityError,
    InvalidCredentials,
    MissingCandidate,
    StorageError,
    SubjectNotFound,
    Unauthenticated,
    VotingError,
)

security_scheme = HTTPBearer(auto_error=False)

_STATUS_BY_ERROR: dict[type[VotingError], int] = {
    DuplicateIdentifier: status.HTTP_409_CONFLICT,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    CodeInvalid: status.HTTP_401_UNAUTHORIZED,
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    SubjectNotFound: status.HTTP_404_NOT_FOUND,
    AlreadyVoted: status.HTTP_409_CONFLICT,
    MissingCandidate: status.HTTP_422_UNPROCESSABLE_ENTITY,
    IntegrityError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FormatError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    DeliveryFailed: status.HTTP_502_BAD_GATEWAY,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(exc: VotingError) -> HTTPException:
    """Translate a service error into its fixed HTTP response."""
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return HTTPException(status_code=status_code, detail=exc.detail, headers=headers)


def get_services(request: Request) -> VotingServices:
    return request.app.state.services


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
    services: VotingServices = Depends(get_services),
) -> Identity:
    if credentials is None:
        raise http_error(Unauthenticated())
    try:
        identity = services.credentials.validate(credentials.credentials)
    except Unauthenticated as exc:
        raise http_error(exc) from exc
    request.state.actor = identity.identifier
    request.state.role = identity.role
    return identity


def require_permission(action: Action) -> Callable[..., Identity]:
    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if not is_allowed(identity.role, action):
            raise http_error(Forbidden())
        return identity

    return dependency


__all__ = ["get_current_identity", "get_services", "http_error", "require_permission", "security_scheme"]
