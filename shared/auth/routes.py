# ============================================================================
# shared/auth/routes.py - Operator authentication routes
# ============================================================================

from fastapi import APIRouter, HTTPException, Depends, Form, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .jwt_auth import OperatorBearer, REFRESH_TOKEN, create_access_token, create_refresh_token, decode_operator_token
from shared.database import get_db
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["authentication"])


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def issue_tokens(operator_id: str) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(operator_id),
        refresh_token=create_refresh_token(operator_id),
        token_type="bearer"
    )


@router.post("/token", response_model=TokenResponse)
async def create_token(
    username: str = Form(...),
    pin: str = Form(...),
    db: Session = Depends(get_db)
):
    """Generate access and refresh tokens for an active operator"""
    from apps.operators.services import OperatorDirectory

    operator = OperatorDirectory(db).authenticate(username, pin)
    if operator is None:
        logger.warning(f"Failed login for operator: {username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid operator or pin"
        )

    logger.info(f"Generated tokens for operator: {username}")
    return issue_tokens(operator.user_id)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_token: str = Form(...),
    db: Session = Depends(get_db)
):
    """Generate new tokens using a refresh token"""
    from apps.operators.services import OperatorDirectory

    payload = decode_operator_token(refresh_token, REFRESH_TOKEN)
    if OperatorDirectory(db).get_active(payload["sub"]) is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Operator is no longer active"
        )

    logger.info(f"Refreshed tokens for operator: {payload['sub']}")
    return issue_tokens(payload["sub"])


@router.get("/me", response_model=dict)
async def whoami(operator_id: str = Depends(OperatorBearer())):
    """Operator identified by the current access token"""
    return {"operator": operator_id}
