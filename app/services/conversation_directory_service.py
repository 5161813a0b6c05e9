import logging
import os
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.exceptions import (
    ConflictError,
    InvalidConversationError,
    NotFoundError,
    NotParticipantError,
)
from app.models.api.conversations import (
    ConversationResponse,
    ConversationSummary,
    LastMessagePreview,
    ParticipantProfile,
)
from app.realtime.change_feed import ChangeFeed
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository
from app.repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)

CONVERSATION_CREATE_ATTEMPTS = int(os.getenv("CONVERSATION_CREATE_ATTEMPTS", "3"))


class ConversationDirectoryService:
    """Resolves mentor/student conversations and lists them per user."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.conversation_repo = ConversationRepository(db, feed)
        self.message_repo = MessageRepository(db, feed)
        self.profile_repo = ProfileRepository(db, feed)

    async def find_or_create(
        self,
        mentor_id: UUID,
        student_id: UUID,
        mentorship_request_id: Optional[UUID] = None,
    ) -> ConversationResponse:
        """
        Return the conversation between mentor and student, creating it
        on first contact:

        1. Verify both profiles exist
        2. Look the pair up in either role order
        3. Insert; on a unique-pair collision roll back and look up again
        """
        if mentor_id == student_id:
            raise InvalidConversationError("A conversation needs two different users")

        # Step 1: Both parties must exist
        profiles = await self.profile_repo.get_by_ids([mentor_id, student_id])
        found = {profile.id for profile in profiles}
        for user_id in (mentor_id, student_id):
            if user_id not in found:
                raise NotFoundError(f"User {user_id} not found")

        for attempt in range(1, CONVERSATION_CREATE_ATTEMPTS + 1):
            # Step 2: Existing conversation wins
            conversation = await self.conversation_repo.get_by_pair(
                mentor_id, student_id
            )
            if conversation:
                return conversation

            # Step 3: Create, relying on the unique (mentor_id, student_id) pair
            now = utcnow()
            try:
                return await self.conversation_repo.create(
                    ConversationResponse(
                        id=uuid4(),
                        mentor_id=mentor_id,
                        student_id=student_id,
                        mentorship_request_id=mentorship_request_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
            except IntegrityError:
                await self.db.rollback()
                logger.info(
                    "Conversation between mentor %s and student %s created "
                    "concurrently (attempt %d)",
                    mentor_id,
                    student_id,
                    attempt,
                )

        raise ConflictError(
            f"Could not resolve conversation between {mentor_id} and {student_id}"
        )

    async def get_conversation(
        self, conversation_id: UUID, actor_id: UUID
    ) -> ConversationResponse:
        """Get a conversation the actor takes part in."""
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        if not conversation:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        if not conversation.has_participant(actor_id):
            raise NotParticipantError(
                f"User {actor_id} is not part of conversation {conversation_id}"
            )
        return conversation

    async def list_for_user(
        self,
        user_id: UUID,
        limit: Optional[int] = 50,
        offset: Optional[int] = 0,
    ) -> List[ConversationSummary]:
        """
        List the user's conversations, most recently active first, each
        annotated with the counterpart, the latest message and the unread
        message count. Annotations are computed at query time.
        """
        # Validate parameters
        if limit is not None and (limit <= 0 or limit > 1000):
            raise ValueError("Limit must be between 1 and 1000")
        if offset is not None and offset < 0:
            raise ValueError("Offset must be non-negative")

        conversations = await self.conversation_repo.list_for_user(
            user_id, limit=limit or 50, offset=offset or 0
        )
        if not conversations:
            return []

        conversation_ids = [conversation.id for conversation in conversations]
        latest = await self.message_repo.latest_by_conversation(conversation_ids)
        unread = await self.message_repo.unread_counts(conversation_ids, user_id)
        counterparts = {
            profile.id: profile
            for profile in await self.profile_repo.get_by_ids(
                {conversation.counterpart_of(user_id) for conversation in conversations}
            )
        }

        summaries = []
        for conversation in conversations:
            profile = counterparts.get(conversation.counterpart_of(user_id))
            last_message = latest.get(conversation.id)
            summaries.append(
                ConversationSummary(
                    **conversation.model_dump(),
                    other_user=(
                        ParticipantProfile(
                            id=profile.id,
                            full_name=profile.full_name,
                            avatar_url=profile.avatar_url,
                        )
                        if profile
                        else None
                    ),
                    last_message=(
                        LastMessagePreview(
                            id=last_message.id,
                            sender_id=last_message.sender_id,
                            body=last_message.body,
                            file_url=last_message.file_url,
                            created_at=last_message.created_at,
                        )
                        if last_message
                        else None
                    ),
                    unread_count=unread.get(conversation.id, 0),
                )
            )
        return summaries
