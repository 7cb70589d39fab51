from typing import Any, Mapping, Optional, Protocol, Sequence

from app.requests.domain.models import (
    DeliveryRequest,
    NewDeliveryRequest,
    NewUser,
    RequestFilters,
    User,
)


class DeliveryRequestRepository(Protocol):
    async def get_user(self, user_id: int) -> Optional[User]:
        ...

    async def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    async def list_users(self) -> Sequence[User]:
        ...

    async def add_user(self, user: NewUser) -> User:
        ...

    async def get_request(self, request_id: int, for_update: bool = False) -> Optional[DeliveryRequest]:
        ...

    async def list_requests(self, filters: RequestFilters) -> Sequence[DeliveryRequest]:
        ...

    async def add_request(self, request: NewDeliveryRequest) -> DeliveryRequest:
        ...

    async def update_request(self, request_id: int, changes: Mapping[str, Any]) -> DeliveryRequest:
        ...

    async def commit(self) -> None:
        ...

