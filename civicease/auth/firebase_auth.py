from firebase_admin import auth
from typing import Optional
import logging

import httpx

from ..core.config import settings
from ..core.exceptions import UnauthorizedError, ValidationError, CivicEaseError
from ..core.firebase_init import initialize_firebase, is_firebase_available

logger = logging.getLogger(__name__)

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"


class FirebaseAuth:
    """Identity provider: createUser, signIn and getUser(token) over Firebase Authentication."""

    def _ensure_initialized(self):
        if not is_firebase_available():
            if not initialize_firebase():
                raise CivicEaseError("Firebase initialization failed - Auth not available")

    async def verify_token(self, token: str) -> Optional[dict]:
        try:
            self._ensure_initialized()
            return auth.verify_id_token(token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            return None

    async def create_user(self, email: str, password: str, display_name: str = None, role: str = None) -> dict:
        self._ensure_initialized()
        try:
            user = auth.create_user(
                email=email,
                password=password,
                display_name=display_name,
                email_verified=True,
            )
        except Exception as e:
            logger.error(f"User creation failed for {email}: {e}")
            raise ValidationError(str(e))

        if role:
            await self.set_custom_claims(user.uid, {"role": role})

        return {
            "uid": user.uid,
            "email": user.email,
        }

    async def set_custom_claims(self, uid: str, claims: dict):
        try:
            auth.set_custom_user_claims(uid, claims)
        except Exception as e:
            raise CivicEaseError(f"Setting custom claims failed: {e}")

    async def get_user(self, uid: str):
        """Get user by UID"""
        try:
            self._ensure_initialized()
            return auth.get_user(uid)
        except Exception as e:
            logger.warning(f"Get user failed: {e}")
            return None

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        """
        Server-side password verification using the Firebase REST API.
        Returns {idToken, refreshToken, expiresIn, localId, ...}
        """
        if not settings.FIREBASE_WEB_API_KEY:
            raise CivicEaseError("Missing FIREBASE_WEB_API_KEY")
        payload = {"email": email, "password": password, "returnSecureToken": True}
        async with httpx.AsyncClient(timeout=15.0) as client:
            resp = await client.post(
                SIGN_IN_URL,
                params={"key": settings.FIREBASE_WEB_API_KEY},
                json=payload,
            )
        if resp.status_code != 200:
            raise UnauthorizedError("Invalid email or password")
        return resp.json()


firebase_auth = FirebaseAuth()
