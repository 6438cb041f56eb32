import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from backend.auth import jwt_handler
from backend.core.errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

VOTER_ROLE = "voter"
ADMIN_ROLE = "admin"
ROLES = {VOTER_ROLE, ADMIN_ROLE}


class TokenClaims(BaseModel):
    user_id: int
    role: str


def verify_token(token: str) -> TokenClaims:
    try:
        payload = jwt_handler.decode_access_token(token)
    except Exception as exc:
        raise Unauthorized("Not authorized, token failed.") from exc

    role = payload.get("role")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise Unauthorized("Invalid token subject.") from exc
    if role not in ROLES:
        raise Unauthorized("Invalid token role.")

    return TokenClaims(user_id=user_id, role=role)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> TokenClaims:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthorized("Not authorized, no token.")
    return verify_token(credentials.credentials)


def require_admin(current_user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
    if current_user.role != ADMIN_ROLE:
        logger.warning("User %s with role %s denied admin access", current_user.user_id, current_user.role)
        raise Forbidden()
    return current_user
