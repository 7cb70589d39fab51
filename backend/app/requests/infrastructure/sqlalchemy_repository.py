import enum
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import Select, asc, desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.requests.application.ports import DeliveryRequestRepository
from app.requests.domain.errors import DuplicateUsername, NotFound
from app.requests.domain.models import (
    DeliveryRequest,
    NewDeliveryRequest,
    NewUser,
    RequestFilters,
    RequestOrdering,
    RequestStatus,
    User,
    UserRole,
)
from database import DeliveryRequest as DeliveryRequestModel, User as UserModel


def build_list_query(filters: RequestFilters) -> Select:
    query = select(DeliveryRequestModel)

    if filters.driver_id is not None:
        query = query.where(DeliveryRequestModel.driver_id == filters.driver_id)
    if filters.created_by_id is not None:
        query = query.where(DeliveryRequestModel.created_by_id == filters.created_by_id)

    if filters.ordering == RequestOrdering.DELIVERY_DATE_ASC:
        query = query.order_by(
            asc(DeliveryRequestModel.delivery_date), asc(DeliveryRequestModel.id)
        )
    else:
        query = query.order_by(
            desc(DeliveryRequestModel.created_at), desc(DeliveryRequestModel.id)
        )
    return query


def to_user(user: UserModel) -> User:
    return User(
        id=user.id,
        username=user.username,
        name=user.name,
        role=UserRole(user.role),
        telegram_id=user.telegram_id,
    )


def to_delivery_request(req: DeliveryRequestModel) -> DeliveryRequest:
    return DeliveryRequest(
        id=req.id,
        location=req.location,
        material=req.material,
        quantity=req.quantity,
        unit=req.unit,
        delivery_date=req.delivery_date,
        status=RequestStatus(req.status),
        comment=req.comment,
        created_by_id=req.created_by_id,
        driver_id=req.driver_id,
        created_at=req.created_at,
    )


class SqlAlchemyDeliveryRequestRepository(DeliveryRequestRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_user(self, user_id: int) -> Optional[User]:
        result = await self._session.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            return None
        return to_user(user)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self._session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        user = result.scalar_one_or_none()
        if user is None:
            return None
        return to_user(user)

    async def list_users(self) -> Sequence[User]:
        result = await self._session.execute(select(UserModel).order_by(asc(UserModel.id)))
        return [to_user(user) for user in result.scalars().all()]

    async def add_user(self, user: NewUser) -> User:
        new_user = UserModel(
            username=user.username,
            name=user.name,
            role=user.role.value,
            telegram_id=user.telegram_id,
        )
        self._session.add(new_user)
        try:
            await self._session.flush()
        except IntegrityError:
            await self._session.rollback()
            raise DuplicateUsername(user.username) from None
        return to_user(new_user)

    async def get_request(
        self, request_id: int, for_update: bool = False
    ) -> Optional[DeliveryRequest]:
        req = await self._load_request(request_id, for_update)
        if req is None:
            return None
        return to_delivery_request(req)

    async def list_requests(self, filters: RequestFilters) -> Sequence[DeliveryRequest]:
        result = await self._session.execute(build_list_query(filters))
        return [to_delivery_request(req) for req in result.scalars().all()]

    async def add_request(self, request: NewDeliveryRequest) -> DeliveryRequest:
        new_request = DeliveryRequestModel(
            location=request.location,
            material=request.material,
            quantity=request.quantity,
            unit=request.unit,
            delivery_date=request.delivery_date,
            status=request.status.value,
            comment=request.comment,
            created_by_id=request.created_by_id,
            driver_id=None,
            created_at=request.created_at,
        )
        self._session.add(new_request)
        await self._session.flush()
        return to_delivery_request(new_request)

    async def update_request(
        self, request_id: int, changes: Mapping[str, Any]
    ) -> DeliveryRequest:
        req = await self._load_request(request_id)
        if req is None:
            raise NotFound("Request not found")

        for name, value in changes.items():
            if isinstance(value, enum.Enum):
                value = value.value
            setattr(req, name, value)

        await self._session.flush()
        return to_delivery_request(req)

    async def commit(self) -> None:
        await self._session.commit()

    async def _load_request(
        self, request_id: int, for_update: bool = False
    ) -> Optional[DeliveryRequestModel]:
        query = select(DeliveryRequestModel).where(DeliveryRequestModel.id == request_id)
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        return result.scalar_one_or_none()
