"""
Lifecycle policy for delivery requests.

A request moves new -> in_progress -> completed. A supplier dispatches a new
request by assigning a driver, and only that driver may complete it. Archived
is a declared status with no transition into it.
"""
from typing import Any, Optional

from app.requests.domain.errors import (
    ImmutableAfterDispatch,
    InvalidTransition,
    TerminalState,
    Unauthorized,
    ValidationError,
)
from app.requests.domain.models import (
    DESCRIPTIVE_FIELDS,
    TERMINAL_STATUSES,
    ActingUser,
    DeliveryRequest,
    RequestStatus,
    RequestUpdate,
    User,
    UserRole,
    ValidatedUpdate,
)

NEXT_STATUS = {
    RequestStatus.NEW: RequestStatus.IN_PROGRESS,
    RequestStatus.IN_PROGRESS: RequestStatus.COMPLETED,
}

REQUIRED_TEXT_FIELDS = ("location", "material", "unit")

FIELD_NAMES = {
    "driver_id": "driverId",
    "delivery_date": "deliveryDate",
}


def api_field(name: str) -> str:
    return FIELD_NAMES.get(name, name)


def effective_changes(current: DeliveryRequest, update: RequestUpdate) -> dict[str, Any]:
    """Supplied fields whose value differs from the stored record."""
    return {
        name: value
        for name, value in update.supplied().items()
        if getattr(current, name) != value
    }


def validate_descriptive_values(changes: dict[str, Any]) -> None:
    for name in REQUIRED_TEXT_FIELDS:
        if name in changes and not str(changes[name]).strip():
            raise ValidationError(f"{name.capitalize()} is required", field=api_field(name))
    if "quantity" in changes and changes["quantity"] < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")


def _validate_status_change(
    current: DeliveryRequest,
    changes: dict[str, Any],
    actor: ActingUser,
    assigned_driver: Optional[User],
) -> None:
    requested = changes["status"]

    if requested == RequestStatus.ARCHIVED:
        raise InvalidTransition("Archiving requests is not supported", field="status")
    if NEXT_STATUS.get(current.status) != requested:
        raise InvalidTransition(
            f"Cannot move a request from '{current.status.value}' to '{requested.value}'",
            field="status",
        )

    if actor.role == UserRole.FOREMAN:
        raise Unauthorized("A foreman cannot change request status")

    elif actor.role == UserRole.SUPPLIER:
        if requested != RequestStatus.IN_PROGRESS:
            raise Unauthorized("Only the assigned driver can complete a delivery")
        if "driver_id" not in changes:
            raise InvalidTransition(
                "A driver must be assigned when dispatching a request", field="driverId"
            )
        if assigned_driver is None or assigned_driver.id != changes["driver_id"]:
            raise ValidationError("Assigned driver does not exist", field="driverId")
        if assigned_driver.role != UserRole.DRIVER:
            raise ValidationError(
                f"User {assigned_driver.id} is not a driver", field="driverId"
            )

    elif actor.role == UserRole.DRIVER:
        if requested != RequestStatus.COMPLETED:
            raise Unauthorized("Only a supplier can dispatch a request")
        if current.driver_id != actor.id:
            raise Unauthorized("This delivery is not assigned to you")
        if "driver_id" in changes:
            raise ImmutableAfterDispatch(
                "The assigned driver cannot change after dispatch", field="driverId"
            )

    else:
        raise AssertionError(f"Unhandled role: {actor.role!r}")

    edited = [name for name in DESCRIPTIVE_FIELDS if name in changes]
    if edited:
        raise ImmutableAfterDispatch(
            "Request details cannot change together with its status",
            field=api_field(edited[0]),
        )


def _validate_field_edit(
    current: DeliveryRequest,
    changes: dict[str, Any],
    actor: ActingUser,
) -> None:
    if "driver_id" in changes:
        if current.status == RequestStatus.NEW:
            raise InvalidTransition(
                "A driver can only be assigned when dispatching a request",
                field="driverId",
            )
        raise ImmutableAfterDispatch(
            "The assigned driver cannot change after dispatch", field="driverId"
        )

    if current.status != RequestStatus.NEW:
        first = next(iter(changes))
        raise ImmutableAfterDispatch(
            "Request details cannot change after dispatch", field=api_field(first)
        )

    if actor.role != UserRole.FOREMAN or actor.id != current.created_by_id:
        raise Unauthorized("Only the foreman who created the request can edit it")

    validate_descriptive_values(changes)


def validate_transition(
    current: DeliveryRequest,
    update: RequestUpdate,
    actor: ActingUser,
    assigned_driver: Optional[User] = None,
) -> ValidatedUpdate:
    """Check ``update`` against the lifecycle rules.

    ``assigned_driver`` is the stored user referenced by ``update.driver_id``,
    or ``None`` when it was not supplied or does not exist.
    """
    supplied = update.supplied()
    if supplied and current.status in TERMINAL_STATUSES:
        raise TerminalState(
            f"Request {current.id} is {current.status.value} and can no longer change",
            field="status" if "status" in supplied else None,
        )

    changes = effective_changes(current, update)
    if not changes:
        return ValidatedUpdate()

    if "status" in changes:
        _validate_status_change(current, changes, actor, assigned_driver)
    else:
        _validate_field_edit(current, changes, actor)

    return ValidatedUpdate(changes=changes)
