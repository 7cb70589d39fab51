"""
Auth Routes - bearer tokens and the acting user
"""
from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from datetime import datetime, timezone, timedelta
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from database import app_settings, get_postgres_session
from app.requests.domain.models import ActingUser
from app.requests.infrastructure.sqlalchemy_repository import (
    SqlAlchemyDeliveryRequestRepository,
)
from app.requests.application.ports import DeliveryRequestRepository
from app.requests.presentation.response_mapper import user_to_response

logger = logging.getLogger(__name__)

# Security
security = HTTPBearer()

# Create router
auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ==================== PYDANTIC MODELS ====================

class TokenRequest(BaseModel):
    username: str


# ==================== HELPER FUNCTIONS ====================

def create_access_token(user_id: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=app_settings.access_token_expire_minutes)
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, app_settings.secret_key, algorithm=app_settings.jwt_algorithm)


async def get_repository(
    session: AsyncSession = Depends(get_postgres_session)
) -> DeliveryRequestRepository:
    return SqlAlchemyDeliveryRequestRepository(session)


async def get_acting_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    repository: DeliveryRequestRepository = Depends(get_repository)
) -> ActingUser:
    """Resolve the bearer token to the stored user performing the call"""
    try:
        payload = jwt.decode(
            credentials.credentials,
            app_settings.secret_key,
            algorithms=[app_settings.jwt_algorithm],
        )
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = await repository.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")

    return ActingUser(id=user.id, role=user.role)


# ==================== AUTH ROUTES ====================

@auth_router.post("/token")
async def issue_token(
    token_request: TokenRequest,
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """Issue a token by username - demo login only"""
    if not app_settings.demo_login_enabled:
        raise HTTPException(status_code=403, detail="Demo login is disabled")

    user = await repository.get_user_by_username(token_request.username)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    logger.info(f"Issued demo token for {user.username} ({user.role.value})")
    return {
        "accessToken": create_access_token(user.id),
        "tokenType": "bearer",
        "user": user_to_response(user),
    }
