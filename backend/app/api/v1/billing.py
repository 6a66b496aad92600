from typing import Any

from fastapi import APIRouter, Body

from app.services import payment_service

router = APIRouter()


@router.post("/webhook")
async def payment_webhook(event: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Receive payment provider events."""
    return await payment_service.handle_webhook(event)
