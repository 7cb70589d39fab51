"""
Delivery Request Routes
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import date, datetime, timezone

from app.requests.application.ports import DeliveryRequestRepository
from app.requests.application.use_cases import (
    CreateDeliveryRequestCommand,
    CreateDeliveryRequestUseCase,
    GetDeliveryRequestUseCase,
    ListDeliveryRequestsQuery,
    ListDeliveryRequestsUseCase,
    UpdateDeliveryRequestUseCase,
)
from app.requests.domain.models import ActingUser, RequestStatus, RequestUpdate
from app.requests.presentation.response_mapper import delivery_request_to_response
from routes.auth_routes import get_acting_user, get_repository

# Create router
requests_router = APIRouter(prefix="/api/requests", tags=["Requests"])


# ==================== PYDANTIC MODELS ====================

class DeliveryRequestCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    location: str
    material: str
    quantity: int = Field(ge=1)
    unit: str
    delivery_date: date
    comment: Optional[str] = None
    created_by_id: Optional[int] = None


class DeliveryRequestPatch(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    status: Optional[RequestStatus] = None
    driver_id: Optional[int] = None
    location: Optional[str] = None
    material: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=1)
    unit: Optional[str] = None
    delivery_date: Optional[date] = None
    comment: Optional[str] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== REQUEST ROUTES ====================

@requests_router.get("")
async def list_requests(
    role: Optional[str] = None,
    user_id: Optional[int] = Query(default=None, alias="userId"),
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """List requests - drivers get their assignments by delivery date"""
    requests = await ListDeliveryRequestsUseCase(repository).execute(
        ListDeliveryRequestsQuery(role=role, user_id=user_id)
    )
    return [delivery_request_to_response(req) for req in requests]


@requests_router.post("", status_code=201)
async def create_request(
    request_data: DeliveryRequestCreate,
    current_user: ActingUser = Depends(get_acting_user),
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """Create a delivery request - foreman only"""
    use_case = CreateDeliveryRequestUseCase(repository=repository, clock=utcnow)
    command = CreateDeliveryRequestCommand(
        location=request_data.location,
        material=request_data.material,
        quantity=request_data.quantity,
        unit=request_data.unit,
        delivery_date=request_data.delivery_date,
        comment=request_data.comment,
        created_by_id=request_data.created_by_id,
    )
    request = await use_case.execute(command, current_user)
    return delivery_request_to_response(request)


@requests_router.get("/{request_id}")
async def get_request(
    request_id: int,
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """Get a single delivery request"""
    request = await GetDeliveryRequestUseCase(repository).execute(request_id)
    return delivery_request_to_response(request)


@requests_router.patch("/{request_id}")
async def update_request(
    request_id: int,
    patch: DeliveryRequestPatch,
    current_user: ActingUser = Depends(get_acting_user),
    repository: DeliveryRequestRepository = Depends(get_repository)
):
    """Assign a driver, complete a delivery or edit a new request"""
    update = RequestUpdate(**patch.model_dump())
    request = await UpdateDeliveryRequestUseCase(repository).execute(
        request_id, update, current_user
    )
    return delivery_request_to_response(request)
