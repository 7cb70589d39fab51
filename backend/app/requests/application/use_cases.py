import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from app.requests.application.ports import DeliveryRequestRepository
from app.requests.domain.errors import (
    DomainError,
    DuplicateUsername,
    NotFound,
    Unauthorized,
    ValidationError,
)
from app.requests.domain.models import (
    ActingUser,
    DeliveryRequest,
    NewDeliveryRequest,
    NewUser,
    RequestFilters,
    RequestOrdering,
    RequestUpdate,
    User,
    UserRole,
)
from app.requests.domain.policy import validate_descriptive_values, validate_transition

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def parse_role(value: str) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        allowed = ", ".join(role.value for role in UserRole)
        raise ValidationError(f"Role must be one of: {allowed}", field="role") from None


@dataclass(frozen=True)
class CreateUserCommand:
    username: str
    name: str
    role: str
    telegram_id: Optional[str] = None


@dataclass(frozen=True)
class CreateDeliveryRequestCommand:
    location: str
    material: str
    quantity: int
    unit: str
    delivery_date: date
    created_by_id: Optional[int] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class ListDeliveryRequestsQuery:
    role: Optional[str] = None
    user_id: Optional[int] = None


class CreateUserUseCase:
    def __init__(self, repository: DeliveryRequestRepository) -> None:
        self._repository = repository

    async def execute(self, command: CreateUserCommand) -> User:
        username = command.username.strip()
        if not username:
            raise ValidationError("Username is required", field="username")
        if not command.name.strip():
            raise ValidationError("Name is required", field="name")
        role = parse_role(command.role)

        if await self._repository.get_user_by_username(username) is not None:
            raise DuplicateUsername(username)

        user = await self._repository.add_user(
            NewUser(
                username=username,
                name=command.name.strip(),
                role=role,
                telegram_id=command.telegram_id,
            )
        )
        await self._repository.commit()
        logger.info("Created user %s (%s) as %s", user.id, user.username, user.role.value)
        return user


class GetUserUseCase:
    def __init__(self, repository: DeliveryRequestRepository) -> None:
        self._repository = repository

    async def execute(self, user_id: int) -> User:
        user = await self._repository.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user


class ListUsersUseCase:
    def __init__(self, repository: DeliveryRequestRepository) -> None:
        self._repository = repository

    async def execute(self) -> Sequence[User]:
        return await self._repository.list_users()


class CreateDeliveryRequestUseCase:
    def __init__(self, repository: DeliveryRequestRepository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock

    async def execute(
        self,
        command: CreateDeliveryRequestCommand,
        current_user: ActingUser,
    ) -> DeliveryRequest:
        if current_user.role != UserRole.FOREMAN:
            raise Unauthorized("Only a foreman can create requests")

        created_by_id = command.created_by_id
        if created_by_id is None:
            created_by_id = current_user.id
        elif created_by_id != current_user.id:
            raise Unauthorized("A foreman can only create requests on their own behalf")

        validate_descriptive_values(
            {
                "location": command.location,
                "material": command.material,
                "unit": command.unit,
                "quantity": command.quantity,
            }
        )

        if await self._repository.get_user(created_by_id) is None:
            raise ValidationError(f"User {created_by_id} does not exist", field="createdById")

        request = await self._repository.add_request(
            NewDeliveryRequest(
                location=command.location,
                material=command.material,
                quantity=command.quantity,
                unit=command.unit,
                delivery_date=command.delivery_date,
                comment=command.comment,
                created_by_id=created_by_id,
                created_at=self._clock(),
            )
        )
        await self._repository.commit()
        logger.info(
            "Request %s created by user %s: %s x%s %s",
            request.id,
            created_by_id,
            request.material,
            request.quantity,
            request.unit,
        )
        return request


class GetDeliveryRequestUseCase:
    def __init__(self, repository: DeliveryRequestRepository) -> None:
        self._repository = repository

    async def execute(self, request_id: int) -> DeliveryRequest:
        request = await self._repository.get_request(request_id)
        if request is None:
            raise NotFound("Request not found")
        return request


class ListDeliveryRequestsUseCase:
    def __init__(self, repository: DeliveryRequestRepository) -> None:
        self._repository = repository

    async def execute(self, query: ListDeliveryRequestsQuery) -> Sequence[DeliveryRequest]:
        filters = RequestFilters()

        if query.role:
            role = parse_role(query.role)
            if query.user_id is not None:
                if role == UserRole.DRIVER:
                    filters = RequestFilters(
                        driver_id=query.user_id,
                        ordering=RequestOrdering.DELIVERY_DATE_ASC,
                    )
                elif role == UserRole.FOREMAN:
                    filters = RequestFilters(created_by_id=query.user_id)

        return await self._repository.list_requests(filters)


class UpdateDeliveryRequestUseCase:
    def __init__(self, repository: DeliveryRequestRepository) -> None:
        self._repository = repository

    async def execute(
        self,
        request_id: int,
        update: RequestUpdate,
        current_user: ActingUser,
    ) -> DeliveryRequest:
        current = await self._repository.get_request(request_id, for_update=True)
        if current is None:
            raise NotFound("Request not found")

        assigned_driver = None
        if update.driver_id is not None:
            assigned_driver = await self._repository.get_user(update.driver_id)

        try:
            validated = validate_transition(current, update, current_user, assigned_driver)
        except DomainError as exc:
            logger.warning(
                "Rejected update of request %s by %s %s: %s",
                request_id,
                current_user.role.value,
                current_user.id,
                exc.message,
            )
            raise

        if validated.is_empty:
            return current

        updated = await self._repository.update_request(request_id, validated.changes)
        await self._repository.commit()

        if updated.status != current.status:
            logger.info(
                "Request %s moved %s -> %s by %s %s",
                request_id,
                current.status.value,
                updated.status.value,
                current_user.role.value,
                current_user.id,
            )
        return updated
