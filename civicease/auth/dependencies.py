from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging

from .firebase_auth import firebase_auth
from ..models.user import UserRole
from ..services.user_service import user_service

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    """
    Verify the bearer token with Firebase and merge in the stored profile.
    Raises 401 if the token is missing or invalid.
    """
    if credentials is None or not credentials.credentials:
        logger.warning("[Auth] Missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    decoded = await firebase_auth.verify_token(credentials.credentials)
    if not decoded:
        logger.warning("[Auth] Token verification failed - invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    uid = decoded.get("uid")
    profile = await user_service.get_profile(uid) or {}

    # The stored profile is the source of truth for the role
    current_user = {**decoded, **profile, "uid": uid}
    current_user["role"] = profile.get("role") or decoded.get("role")

    logger.info(f"[Auth] Authenticated user: {current_user.get('email')} with role: {current_user.get('role')}")
    return current_user

def require_role(required_roles: list, detail: Optional[str] = None):
    allowed = {UserRole.parse(role) for role in required_roles}

    def role_checker(current_user: dict = Depends(get_current_user)):
        user_role = UserRole.parse(current_user.get("role"))

        if user_role not in allowed:
            logger.warning(f"[Auth] Role check failed: user role '{current_user.get('role')}' not in required roles {required_roles}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=detail or "Not authorized",
            )
        return current_user
    return role_checker

require_admin = require_role([UserRole.ADMIN], detail="Admin access required")
require_authority = require_role([UserRole.ADMIN, UserRole.SUBADMIN])
