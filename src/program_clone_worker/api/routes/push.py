"""Push delivery route for clone job messages."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from program_clone_worker.api.dependencies import get_delivery_handler
from program_clone_worker.application.services import (
    CloneJobDeliveryHandler,
    DeliveryOutcome,
)

router = APIRouter(tags=["push delivery"])


@router.post(
    "/",
    responses={
        400: {"description": "Malformed message or unusable snapshot; do not redeliver"},
        500: {"description": "Clone failed; redeliver"},
    },
)
async def receive_push(
    request: Request,
    handler: CloneJobDeliveryHandler = Depends(get_delivery_handler),
) -> dict[str, str]:
    """Run the clone job carried by one push envelope."""

    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body is not valid JSON.") from exc

    result = await handler.handle_push(body)
    if result.outcome is DeliveryOutcome.ACK:
        return {"status": "ok"}
    if result.outcome is DeliveryOutcome.REJECT:
        raise HTTPException(status_code=400, detail=result.detail)
    raise HTTPException(status_code=500, detail=result.detail)


__all__ = ["router"]
