from datetime import date, datetime, timezone

import pytest

from app.requests.domain.errors import (
    ImmutableAfterDispatch,
    InvalidTransition,
    TerminalState,
    Unauthorized,
    ValidationError,
)
from app.requests.domain.models import (
    ActingUser,
    DeliveryRequest,
    RequestStatus,
    RequestUpdate,
    User,
    UserRole,
)
from app.requests.domain.policy import validate_transition

FOREMAN = ActingUser(id=1, role=UserRole.FOREMAN)
SUPPLIER = ActingUser(id=2, role=UserRole.SUPPLIER)
DRIVER = ActingUser(id=3, role=UserRole.DRIVER)
OTHER_DRIVER = ActingUser(id=4, role=UserRole.DRIVER)

DRIVER_USER = User(id=3, username="driver_sanya", name="Sanyok", role=UserRole.DRIVER)
SUPPLIER_USER = User(id=2, username="supplier_petr", name="Petr", role=UserRole.SUPPLIER)


def make_request(status=RequestStatus.NEW, driver_id=None, **overrides):
    values = dict(
        id=1,
        location="Site A",
        material="Concrete M300",
        quantity=5,
        unit="m3",
        delivery_date=date(2025, 6, 1),
        status=status,
        created_by_id=1,
        created_at=datetime(2025, 5, 20, 8, 0, tzinfo=timezone.utc),
        driver_id=driver_id,
    )
    values.update(overrides)
    return DeliveryRequest(**values)


def test_supplier_dispatches_new_request_with_driver():
    validated = validate_transition(
        make_request(),
        RequestUpdate(status=RequestStatus.IN_PROGRESS, driver_id=3),
        SUPPLIER,
        DRIVER_USER,
    )

    assert validated.changes == {"status": RequestStatus.IN_PROGRESS, "driver_id": 3}


def test_supplier_dispatch_without_driver_is_invalid():
    with pytest.raises(InvalidTransition) as exc_info:
        validate_transition(
            make_request(), RequestUpdate(status=RequestStatus.IN_PROGRESS), SUPPLIER
        )

    assert exc_info.value.field == "driverId"


def test_supplier_dispatch_to_unknown_user_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_transition(
            make_request(),
            RequestUpdate(status=RequestStatus.IN_PROGRESS, driver_id=99),
            SUPPLIER,
            None,
        )

    assert exc_info.value.field == "driverId"


def test_supplier_dispatch_to_non_driver_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_transition(
            make_request(),
            RequestUpdate(status=RequestStatus.IN_PROGRESS, driver_id=2),
            SUPPLIER,
            SUPPLIER_USER,
        )

    assert exc_info.value.field == "driverId"


def test_assigned_driver_completes_delivery():
    validated = validate_transition(
        make_request(RequestStatus.IN_PROGRESS, driver_id=3),
        RequestUpdate(status=RequestStatus.COMPLETED),
        DRIVER,
    )

    assert validated.changes == {"status": RequestStatus.COMPLETED}


def test_unassigned_driver_cannot_complete():
    with pytest.raises(Unauthorized):
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(status=RequestStatus.COMPLETED),
            OTHER_DRIVER,
        )


@pytest.mark.parametrize("actor", [FOREMAN, SUPPLIER])
def test_only_drivers_complete_deliveries(actor):
    with pytest.raises(Unauthorized):
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(status=RequestStatus.COMPLETED),
            actor,
        )


def test_driver_cannot_complete_new_request():
    with pytest.raises((InvalidTransition, Unauthorized)):
        validate_transition(
            make_request(), RequestUpdate(status=RequestStatus.COMPLETED), DRIVER
        )


def test_skipping_a_state_is_invalid():
    with pytest.raises(InvalidTransition):
        validate_transition(
            make_request(), RequestUpdate(status=RequestStatus.COMPLETED), SUPPLIER
        )


def test_moving_backwards_is_invalid():
    with pytest.raises(InvalidTransition):
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(status=RequestStatus.NEW),
            SUPPLIER,
        )


def test_foreman_cannot_dispatch():
    with pytest.raises(Unauthorized):
        validate_transition(
            make_request(),
            RequestUpdate(status=RequestStatus.IN_PROGRESS, driver_id=3),
            FOREMAN,
            DRIVER_USER,
        )


def test_driver_cannot_dispatch():
    with pytest.raises(Unauthorized):
        validate_transition(
            make_request(),
            RequestUpdate(status=RequestStatus.IN_PROGRESS, driver_id=3),
            DRIVER,
            DRIVER_USER,
        )


def test_archiving_is_not_a_transition():
    with pytest.raises(InvalidTransition):
        validate_transition(
            make_request(), RequestUpdate(status=RequestStatus.ARCHIVED), SUPPLIER
        )


@pytest.mark.parametrize("status", [RequestStatus.COMPLETED, RequestStatus.ARCHIVED])
@pytest.mark.parametrize(
    "update",
    [
        RequestUpdate(status=RequestStatus.IN_PROGRESS),
        RequestUpdate(status=RequestStatus.NEW),
        RequestUpdate(quantity=10),
        RequestUpdate(driver_id=4),
    ],
)
def test_terminal_requests_reject_any_change(status, update):
    with pytest.raises(TerminalState):
        validate_transition(make_request(status, driver_id=3), update, DRIVER)


def test_foreman_edits_own_new_request():
    validated = validate_transition(
        make_request(), RequestUpdate(quantity=8, comment="Unload at gate 2"), FOREMAN
    )

    assert validated.changes == {"quantity": 8, "comment": "Unload at gate 2"}


def test_other_foreman_cannot_edit():
    with pytest.raises(Unauthorized):
        validate_transition(
            make_request(),
            RequestUpdate(quantity=8),
            ActingUser(id=7, role=UserRole.FOREMAN),
        )


def test_supplier_cannot_edit_details():
    with pytest.raises(Unauthorized):
        validate_transition(make_request(), RequestUpdate(material="Sand"), SUPPLIER)


def test_details_are_frozen_after_dispatch():
    with pytest.raises(ImmutableAfterDispatch) as exc_info:
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(quantity=8),
            FOREMAN,
        )

    assert exc_info.value.field == "quantity"


def test_details_cannot_ride_along_with_dispatch():
    with pytest.raises(ImmutableAfterDispatch) as exc_info:
        validate_transition(
            make_request(),
            RequestUpdate(status=RequestStatus.IN_PROGRESS, driver_id=3, delivery_date=date(2025, 6, 2)),
            SUPPLIER,
            DRIVER_USER,
        )

    assert exc_info.value.field == "deliveryDate"


def test_driver_cannot_be_assigned_without_dispatch():
    with pytest.raises(InvalidTransition):
        validate_transition(make_request(), RequestUpdate(driver_id=3), SUPPLIER, DRIVER_USER)


def test_driver_cannot_be_reassigned_after_dispatch():
    with pytest.raises(ImmutableAfterDispatch):
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(driver_id=4),
            SUPPLIER,
        )


def test_driver_cannot_hand_over_while_completing():
    with pytest.raises(ImmutableAfterDispatch):
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(status=RequestStatus.COMPLETED, driver_id=4),
            DRIVER,
        )


def test_edit_to_zero_quantity_names_the_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_transition(make_request(), RequestUpdate(quantity=0), FOREMAN)

    assert exc_info.value.field == "quantity"


def test_blank_material_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_transition(make_request(), RequestUpdate(material="  "), FOREMAN)

    assert exc_info.value.field == "material"


def test_echoed_values_are_not_changes():
    current = make_request(RequestStatus.IN_PROGRESS, driver_id=3)

    validated = validate_transition(
        current,
        RequestUpdate(status=RequestStatus.IN_PROGRESS, driver_id=3, quantity=5),
        OTHER_DRIVER,
    )

    assert validated.is_empty


@pytest.mark.parametrize("status", [RequestStatus.COMPLETED, RequestStatus.ARCHIVED])
def test_terminal_request_rejects_echoed_status(status):
    with pytest.raises(TerminalState) as exc_info:
        validate_transition(
            make_request(status, driver_id=3), RequestUpdate(status=status), OTHER_DRIVER
        )

    assert exc_info.value.field == "status"


@pytest.mark.parametrize("actor", [OTHER_DRIVER, SUPPLIER, FOREMAN])
def test_wrong_actor_completing_with_details_is_unauthorized(actor):
    with pytest.raises(Unauthorized):
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(status=RequestStatus.COMPLETED, comment="done"),
            actor,
        )


def test_assigned_driver_cannot_edit_details_while_completing():
    with pytest.raises(ImmutableAfterDispatch) as exc_info:
        validate_transition(
            make_request(RequestStatus.IN_PROGRESS, driver_id=3),
            RequestUpdate(status=RequestStatus.COMPLETED, comment="done"),
            DRIVER,
        )

    assert exc_info.value.field == "comment"
