"""Staff notification inbox and live WebSocket feed."""

from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from evdispatch.db import crud
from evdispatch.dependencies import get_dispatch, require_user
from evdispatch.schemas import NotificationRead
from evdispatch.services.dispatch import DispatchContext
from evdispatch.services.notifications import ws_manager

router = APIRouter(tags=["notifications"])


@router.get("/api/notifications", response_model=list[NotificationRead])
async def list_notifications(
    unread_only: bool = False,
    user=Depends(require_user),
    ctx: DispatchContext = Depends(get_dispatch),
):
    async with ctx.session_factory() as db:
        return await crud.list_notifications_for_user(db, user.id, unread_only)


@router.websocket("/ws/notifications/{user_id}")
async def notifications_ws(websocket: WebSocket, user_id: str):
    await ws_manager.connect(user_id, websocket)
    try:
        while True:
            await websocket.receive_text()  # keep-alive
    except WebSocketDisconnect:
        ws_manager.disconnect(user_id, websocket)
