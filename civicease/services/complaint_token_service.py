from ..database.database_service import database_service
from ..database.collections import COLLECTIONS
from ..core.exceptions import StorageError
import logging
import re
import secrets
import string
import time

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"^CMP-\d+-[A-Z0-9]{6}$")
_TOKEN_ALPHABET = string.ascii_uppercase + string.digits


class ComplaintTokenService:
    MAX_ATTEMPTS = 5

    def __init__(self):
        self.db = database_service

    @staticmethod
    def new_token() -> str:
        """
        Human-readable complaint token in format: CMP-<epoch ms>-<6 chars>
        Example: CMP-1735689600000-4K9QZX
        """
        suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(6))
        return f"CMP-{int(time.time() * 1000)}-{suffix}"

    async def verify_token_uniqueness(self, token: str) -> bool:
        success, results, error = await self.db.query_documents(
            COLLECTIONS['complaints'],
            [("token", "==", token)],
            limit=1,
        )
        if not success:
            raise StorageError(f"Failed to verify token uniqueness: {error}")
        return len(results) == 0

    async def generate_complaint_token(self) -> str:
        for _ in range(self.MAX_ATTEMPTS):
            token = self.new_token()
            if await self.verify_token_uniqueness(token):
                logger.info(f"Generated complaint token: {token}")
                return token
            logger.warning(f"Complaint token collision on {token}, retrying")
        raise StorageError("Could not generate a unique complaint token")


complaint_token_service = ComplaintTokenService()
