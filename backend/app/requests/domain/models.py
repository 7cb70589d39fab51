import enum
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Mapping, Optional


class UserRole(str, enum.Enum):
    FOREMAN = "foreman"
    SUPPLIER = "supplier"
    DRIVER = "driver"


class RequestStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.ARCHIVED})

# Fields a foreman fills in at creation; editable only while the request is new.
DESCRIPTIVE_FIELDS = ("location", "material", "quantity", "unit", "delivery_date", "comment")


@dataclass(frozen=True)
class User:
    id: int
    username: str
    name: str
    role: UserRole
    telegram_id: Optional[str] = None


@dataclass(frozen=True)
class ActingUser:
    id: int
    role: UserRole


@dataclass(frozen=True)
class DeliveryRequest:
    id: int
    location: str
    material: str
    quantity: int
    unit: str
    delivery_date: date
    status: RequestStatus
    created_by_id: int
    created_at: datetime
    comment: Optional[str] = None
    driver_id: Optional[int] = None


@dataclass(frozen=True)
class NewUser:
    username: str
    name: str
    role: UserRole
    telegram_id: Optional[str] = None


@dataclass(frozen=True)
class NewDeliveryRequest:
    location: str
    material: str
    quantity: int
    unit: str
    delivery_date: date
    created_by_id: int
    created_at: datetime
    comment: Optional[str] = None
    status: RequestStatus = RequestStatus.NEW


@dataclass(frozen=True)
class RequestUpdate:
    """Partial update as sent by a client. ``None`` means "not supplied"."""

    status: Optional[RequestStatus] = None
    driver_id: Optional[int] = None
    location: Optional[str] = None
    material: Optional[str] = None
    quantity: Optional[int] = None
    unit: Optional[str] = None
    delivery_date: Optional[date] = None
    comment: Optional[str] = None

    def supplied(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class ValidatedUpdate:
    changes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.changes


class RequestOrdering(str, enum.Enum):
    CREATED_AT_DESC = "created_at_desc"
    DELIVERY_DATE_ASC = "delivery_date_asc"


@dataclass(frozen=True)
class RequestFilters:
    driver_id: Optional[int] = None
    created_by_id: Optional[int] = None
    ordering: RequestOrdering = RequestOrdering.CREATED_AT_DESC
