# ============================================================================
# shared/auth/jwt_auth.py - Operator session tokens
# ============================================================================

from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import config
import logging

logger = logging.getLogger(__name__)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
REFRESH_LIFETIME = timedelta(days=7)


class OperatorBearer(HTTPBearer):
    """Resolves the bearer token of a request to the calling operator's id"""

    def __init__(self, auto_error: bool = True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, credentials: HTTPAuthorizationCredentials = Depends(HTTPBearer())) -> str:
        return decode_operator_token(credentials.credentials, ACCESS_TOKEN)["sub"]


def _sign(operator_id: str, token_type: str, lifetime: timedelta) -> str:
    issued = datetime.now(timezone.utc)
    claims = {"sub": operator_id, "type": token_type, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def create_access_token(operator_id: str, expires_delta: Optional[timedelta] = None) -> str:
    return _sign(operator_id, ACCESS_TOKEN, expires_delta or config.JWT_EXPIRATION_DELTA)


def create_refresh_token(operator_id: str, expires_delta: Optional[timedelta] = None) -> str:
    return _sign(operator_id, REFRESH_TOKEN, expires_delta or REFRESH_LIFETIME)


def decode_operator_token(token: str, token_type: str) -> Dict[str, Any]:
    """Claims of a valid, unexpired token of ``token_type``; 401 otherwise"""
    label = "Token" if token_type == ACCESS_TOKEN else "Refresh token"
    try:
        claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{label} has expired"
        )
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {label.lower()}"
        )

    if claims.get("type") != token_type or not claims.get("sub"):
        logger.warning(f"Rejected {claims.get('type')} token where {token_type} was expected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )
    return claims
