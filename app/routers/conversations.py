import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import db_session
from app.dependencies import current_user_id
from app.exceptions import (
    ConflictError,
    InvalidConversationError,
    InvalidMessageError,
    NotFoundError,
    NotParticipantError,
)
from app.models.api.conversations import (
    ConversationResponse,
    ConversationSummary,
    FindOrCreateConversationRequest,
)
from app.models.api.messages import MarkReadResponse, MessageResponse, SendMessageRequest
from app.services.conversation_directory_service import ConversationDirectoryService
from app.services.get_conversation_messages_service import (
    GetConversationMessagesService,
)
from app.services.mark_messages_read_service import MarkMessagesReadService
from app.services.send_message_service import SendMessageService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ConversationResponse)
async def find_or_create_conversation(
    request: FindOrCreateConversationRequest,
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> ConversationResponse:
    """
    Resolve the conversation between a mentor and a student, creating it on
    first contact. The acting user must be one of the two.
    """
    if user_id not in (request.mentor_id, request.student_id):
        raise HTTPException(
            status_code=403, detail="Only a party can open this conversation"
        )
    try:
        service = ConversationDirectoryService(db)
        return await service.find_or_create(
            mentor_id=request.mentor_id,
            student_id=request.student_id,
            mentorship_request_id=request.mentorship_request_id,
        )
    except InvalidConversationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception("Failed to resolve conversation")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[ConversationSummary])
async def list_conversations(
    limit: Optional[int] = Query(
        50, description="Maximum number of conversations to return", ge=1, le=1000
    ),
    offset: Optional[int] = Query(
        0, description="Number of conversations to skip", ge=0
    ),
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> List[ConversationSummary]:
    """
    List the acting user's conversations, most recently active first.

    Query parameters:
    - limit: Maximum number of conversations to return (default: 50, max: 1000)
    - offset: Number of conversations to skip (default: 0)
    """
    try:
        service = ConversationDirectoryService(db)
        return await service.list_for_user(user_id, limit=limit, offset=offset)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Failed to list conversations")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> ConversationResponse:
    """Get a conversation the acting user takes part in."""
    try:
        service = ConversationDirectoryService(db)
        return await service.get_conversation(conversation_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotParticipantError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception:
        logger.exception("Failed to get conversation %s", conversation_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def get_conversation_messages(
    conversation_id: UUID,
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> List[MessageResponse]:
    """Get all messages for a conversation, oldest first."""
    try:
        service = GetConversationMessagesService(db)
        return await service.get_conversation_messages(conversation_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotParticipantError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception:
        logger.exception("Failed to list messages of %s", conversation_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{conversation_id}/messages", response_model=MessageResponse)
async def send_message(
    conversation_id: UUID,
    request: SendMessageRequest,
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> MessageResponse:
    """Send a text message and/or file reference as the acting user."""
    try:
        service = SendMessageService(db)
        return await service.send_message(
            conversation_id, user_id, request.body, request.file_url
        )
    except InvalidMessageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotParticipantError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception:
        logger.exception("Failed to send message to %s", conversation_id)
        raise HTTPException(status_code=500, detail="Failed to send message")


@router.post("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    conversation_id: UUID,
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> MarkReadResponse:
    """Mark read every message the acting user received in the conversation."""
    try:
        service = MarkMessagesReadService(db)
        updated = await service.mark_read(conversation_id, user_id)
        return MarkReadResponse(updated=updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotParticipantError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception:
        logger.exception("Failed to mark %s read", conversation_id)
        raise HTTPException(status_code=500, detail="Internal server error")
