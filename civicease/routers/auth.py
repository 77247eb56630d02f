"""
Authentication & account routes.

- Citizens and contractors sign themselves up.
- Sub-admins are created by the main admin and may be tied to a department.
- The main admin is bootstrapped once with the configured secret key.
- Login is email + password, verified against Firebase.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Depends

from ..auth.dependencies import require_role
from ..core.config import settings
from ..core.exceptions import CivicEaseError, ForbiddenError
from ..models.user import (
    AdminCreate,
    CitizenSignup,
    ContractorSignup,
    LoginRequest,
    SubAdminSignup,
    UserRole,
)
from ..services.user_service import user_service

logger = logging.getLogger("civicease.routers.auth")
router = APIRouter(prefix="/auth", tags=["authentication"])

require_main_admin = require_role([UserRole.ADMIN], detail="Only main admin can create sub-admins")


def _redact_sensitive(d: Dict[str, Any]) -> Dict[str, Any]:
    redacted = dict(d or {})
    for key in ("password", "secretKey", "aadhaar"):
        if redacted.get(key) is not None:
            redacted[key] = "***"
    return redacted


@router.post("/signup/citizen")
async def signup_citizen(body: CitizenSignup) -> Dict[str, Any]:
    try:
        logger.info("Citizen signup: %s", _redact_sensitive(body.model_dump()))
        profile = await user_service.signup_citizen(body)
        return {"success": True, "userId": profile["id"]}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.exception("Citizen signup exception")
        raise HTTPException(status_code=500, detail=f"Signup failed: {e}")


@router.post("/signup/contractor")
async def signup_contractor(body: ContractorSignup) -> Dict[str, Any]:
    try:
        logger.info("Contractor signup: %s", _redact_sensitive(body.model_dump()))
        profile = await user_service.signup_contractor(body)
        return {"success": True, "userId": profile["id"]}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.exception("Contractor signup exception")
        raise HTTPException(status_code=500, detail=f"Signup failed: {e}")


@router.post("/signup/subadmin")
async def signup_subadmin(
    body: SubAdminSignup,
    current_user: dict = Depends(require_main_admin),
) -> Dict[str, Any]:
    try:
        logger.info("Sub-admin signup by %s: %s", current_user.get("uid"), _redact_sensitive(body.model_dump()))
        profile = await user_service.signup_subadmin(body)
        return {"success": True, "userId": profile["id"]}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.exception("Sub-admin signup exception")
        raise HTTPException(status_code=500, detail=f"Signup failed: {e}")


@router.post("/create-admin")
async def create_admin(body: AdminCreate) -> Dict[str, Any]:
    """One-time setup of the main admin, gated by ADMIN_SECRET_KEY."""
    try:
        if body.secretKey != settings.ADMIN_SECRET_KEY:
            logger.warning("Admin creation attempted with an invalid secret key")
            raise ForbiddenError("Invalid secret key")

        profile = await user_service.create_admin(body)
        return {"success": True, "userId": profile["id"]}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.exception("Admin creation exception")
        raise HTTPException(status_code=500, detail=f"Admin creation failed: {e}")


@router.post("/login")
async def login(body: LoginRequest) -> Dict[str, Any]:
    """Email + password login; returns the Firebase id token and the stored profile."""
    try:
        logger.info("Login attempt: %s", _redact_sensitive(body.model_dump()))
        session = await user_service.login(body.email, body.password)
        return {"success": True, **session}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.exception("Login exception")
        raise HTTPException(status_code=500, detail=f"Login failed: {e}")
