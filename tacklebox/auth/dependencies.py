from __future__ import annotations

from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from loguru import logger
from starlette.requests import Request

from tacklebox.settings import settings
from tacklebox.workflow.config import WorkflowConfig
from tacklebox.workflow.models import AuthSession, parse_user

# --- OAuth2 Scheme ---
# Tokens come from the identity provider; a missing token is not an error
# here, the guard decides what an anonymous visitor sees.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.login_path, auto_error=False)


def session_from_token(token: Optional[str]) -> AuthSession:
    """
    Decode an identity-provider JWT into a session.
    Claims: 'sub' (user id), 'role', optional 'level'.
    Bad or missing tokens give an anonymous session.
    """
    if not token:
        return AuthSession.anonymous()
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
        user_id = payload.get("sub")
        if user_id is None:
            return AuthSession.anonymous()
        user = parse_user(
            {
                "id": user_id,
                "role": payload.get("role"),
                "level": payload.get("level"),
                "email": payload.get("email"),
                "display_name": payload.get("name"),
            }
        )
    except (JWTError, ValueError) as exc:
        logger.info("Rejected session token: {}", exc)
        return AuthSession.anonymous()
    return AuthSession.for_user(user)


async def get_auth_session(
    token: Optional[str] = Depends(oauth2_scheme),
) -> AuthSession:
    """
    Dependency resolving the current session from the bearer token.
    Override it to plug in another identity provider.
    """
    return session_from_token(token)


def get_workflow_config(request: Request) -> WorkflowConfig:
    """The workflow tables built at startup."""
    return request.app.state.workflow_config
