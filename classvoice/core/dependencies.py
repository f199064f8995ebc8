import logging
import secrets
from typing import Any, Dict, Optional

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from classvoice.core.config import settings
from classvoice.core.security import jwt_manager

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> Dict[str, Any]:
    """
    Dependency that requires an admin Bearer token.
    Returns the decoded token payload.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = jwt_manager.verify_token(credentials.credentials, "access")

    if payload.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )

    return payload


async def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> None:
    """
    Guard for the maintenance endpoints.
    Only enforced when CRON_SECRET is configured.
    """
    if not settings.cron_secret:
        return

    supplied = credentials.credentials if credentials else ""
    if not secrets.compare_digest(supplied, settings.cron_secret):
        logger.warning("Rejected cron call with missing or wrong secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
