from typing import Any, Dict

from app.requests.domain.models import DeliveryRequest, User


def user_to_response(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "role": user.role.value,
        "telegramId": user.telegram_id,
    }


def delivery_request_to_response(request: DeliveryRequest) -> Dict[str, Any]:
    return {
        "id": request.id,
        "location": request.location,
        "material": request.material,
        "quantity": request.quantity,
        "unit": request.unit,
        "deliveryDate": request.delivery_date.isoformat(),
        "status": request.status.value,
        "comment": request.comment,
        "createdById": request.created_by_id,
        "driverId": request.driver_id,
        "createdAt": request.created_at.isoformat() if request.created_at else None,
    }
