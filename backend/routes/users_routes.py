"""
User Routes
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional

from app.requests.application.ports import DeliveryRequestRepository
from app.requests.application.use_cases import (
    CreateUserCommand,
    CreateUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
)
from app.requests.presentation.response_mapper import user_to_response
from routes.auth_routes import get_repository

# Create router
users_router = APIRouter(prefix="/api/users", tags=["Users"])


# ==================== PYDANTIC MODELS ====================

class UserCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: str
    name: str
    role: str
    telegram_id: Optional[str] = None


# ==================== USER ROUTES ====================

@users_router.get("")
async def list_users(
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """List all users in creation order"""
    users = await ListUsersUseCase(repository).execute()
    return [user_to_response(user) for user in users]


@users_router.post("", status_code=201)
async def create_user(
    user_data: UserCreate,
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """Register a foreman, supplier or driver"""
    user = await CreateUserUseCase(repository).execute(
        CreateUserCommand(
            username=user_data.username,
            name=user_data.name,
            role=user_data.role,
            telegram_id=user_data.telegram_id,
        )
    )
    return user_to_response(user)


@users_router.get("/{user_id}")
async def get_user(
    user_id: int,
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """Get a single user"""
    user = await GetUserUseCase(repository).execute(user_id)
    return user_to_response(user)
