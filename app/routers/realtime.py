"""WebSocket endpoints pushing change-feed events to connected clients.

Clients treat a dropped socket as "live updates stopped" and re-fetch over
HTTP after reconnecting.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from app.database import AsyncSessionLocal
from app.dependencies import current_user_id
from app.exceptions import NotFoundError, NotParticipantError
from app.models.api.messages import MessageResponse
from app.models.api.notifications import UnreadCountResponse
from app.services.conversation_directory_service import ConversationDirectoryService
from app.services.get_conversation_messages_service import (
    GetConversationMessagesService,
)
from app.services.unread_counter_service import UnreadCounterService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass


@router.websocket("/conversations/{conversation_id}")
async def conversation_messages_stream(
    websocket: WebSocket,
    conversation_id: UUID,
    user_id: UUID = Depends(current_user_id),
) -> None:
    """Push every new message of the conversation to a participant."""
    async with AsyncSessionLocal() as db:
        try:
            await ConversationDirectoryService(db).get_conversation(
                conversation_id, user_id
            )
        except (NotFoundError, NotParticipantError):
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        service = GetConversationMessagesService(db)

    await websocket.accept()

    async def forward(message: MessageResponse) -> None:
        await websocket.send_json(message.model_dump(mode="json"))

    subscription = await service.subscribe(conversation_id, forward)
    logger.debug("User %s following conversation %s", user_id, conversation_id)
    try:
        await _wait_for_disconnect(websocket)
    finally:
        await subscription.close()


@router.websocket("/notifications")
async def unread_count_stream(
    websocket: WebSocket,
    user_id: UUID = Depends(current_user_id),
) -> None:
    """Push the unread notification count on connect and after each change."""
    await websocket.accept()
    counter = UnreadCounterService()

    async def forward(count: int) -> None:
        await websocket.send_json(UnreadCountResponse(count=count).model_dump())

    # Subscribe before the first read so no change slips between the two
    subscription = await counter.subscribe(user_id, forward)
    try:
        await forward(await counter.get_count(user_id))
        await _wait_for_disconnect(websocket)
    finally:
        await subscription.close()
