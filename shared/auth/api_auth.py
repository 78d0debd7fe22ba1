# ============================================================================
# shared/auth/api_auth.py - Admin key for operator management and resets
# ============================================================================

from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import hmac
import config
import logging

logger = logging.getLogger(__name__)


class AdminKeyBearer(HTTPBearer):
    """Bearer dependency accepting only the configured admin API key"""

    def __init__(self, auto_error: bool = True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, credentials: HTTPAuthorizationCredentials = Depends(HTTPBearer())) -> str:
        return check_admin_key(credentials.credentials)


def check_admin_key(key: str) -> str:
    if not hmac.compare_digest(key.encode("utf-8"), config.API_KEY.encode("utf-8")):
        logger.warning("Rejected admin request with an invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )
    return key
