from fastapi import Depends, Header
from sqlalchemy.orm import Session

from loyalty_card.db import get_db
from loyalty_card.errors import Forbidden, NotAuthenticated
from loyalty_card.services.session_service import Principal, SessionManager, can


def get_bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_session_manager(db: Session = Depends(get_db)) -> SessionManager:
    return SessionManager(db)


def get_principal(
    token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> Principal:
    return sessions.current(token)


def require_capability(capability: str):
    def _check(principal: Principal = Depends(get_principal)) -> Principal:
        if not principal.is_authenticated:
            raise NotAuthenticated("Login required")
        if not can(principal, capability):
            raise Forbidden(f"{principal.role.value} may not {capability.replace('_', ' ')}")
        return principal

    return _check
