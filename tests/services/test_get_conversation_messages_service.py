import asyncio
from typing import List
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, NotParticipantError
from app.models.api.messages import MessageResponse
from app.realtime.change_feed import ChangeFeed, EventType
from app.services.conversation_directory_service import ConversationDirectoryService
from app.services.get_conversation_messages_service import (
    GetConversationMessagesService,
)
from app.services.send_message_service import SendMessageService


class TestGetConversationMessagesService:
    """Tests for message history and the live message feed."""

    @pytest.fixture
    async def conversation(self, test_db: AsyncSession, feed: ChangeFeed, profiles):
        directory = ConversationDirectoryService(test_db, feed)
        return await directory.find_or_create(profiles["mentor"].id, profiles["student"].id)

    @pytest.mark.asyncio
    async def test_history_in_creation_order_and_stable(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles, conversation
    ) -> None:
        """Test that history is ascending by creation time on every call."""
        sender = SendMessageService(test_db, feed)
        for index in range(5):
            author = profiles["mentor"] if index % 2 else profiles["student"]
            await sender.send_message(conversation.id, author.id, f"message {index}")
        service = GetConversationMessagesService(test_db, feed)

        first = await service.get_conversation_messages(conversation.id, profiles["mentor"].id)
        second = await service.get_conversation_messages(conversation.id, profiles["student"].id)

        timestamps = [message.created_at for message in first]
        assert timestamps == sorted(timestamps)
        assert [m.id for m in first] == [m.id for m in second]
        assert [m.body for m in first] == [f"message {i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_history_participants_only(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles, conversation
    ) -> None:
        service = GetConversationMessagesService(test_db, feed)

        with pytest.raises(NotParticipantError):
            await service.get_conversation_messages(conversation.id, profiles["outsider"].id)
        with pytest.raises(NotFoundError):
            await service.get_conversation_messages(uuid4(), profiles["mentor"].id)

    @pytest.mark.asyncio
    async def test_subscribe_receives_new_messages_in_order(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles, conversation
    ) -> None:
        """Test live delivery of inserts for the open conversation."""
        received: "asyncio.Queue[MessageResponse]" = asyncio.Queue()
        service = GetConversationMessagesService(test_db, feed)
        subscription = await service.subscribe(conversation.id, received.put)

        sender = SendMessageService(test_db, feed)
        sent = [
            await sender.send_message(conversation.id, profiles["mentor"].id, body)
            for body in ["a", "b", "c"]
        ]
        delivered = [await asyncio.wait_for(received.get(), timeout=1) for _ in sent]

        assert [m.id for m in delivered] == [m.id for m in sent]
        await subscription.close()

    @pytest.mark.asyncio
    async def test_subscribe_ignores_other_conversations(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles, conversation
    ) -> None:
        directory = ConversationDirectoryService(test_db, feed)
        other = await directory.find_or_create(profiles["mentor"].id, profiles["outsider"].id)
        received: List[MessageResponse] = []

        async def on_message(message: MessageResponse) -> None:
            received.append(message)

        subscription = await GetConversationMessagesService(test_db, feed).subscribe(
            conversation.id, on_message
        )
        await SendMessageService(test_db, feed).send_message(
            other.id, profiles["outsider"].id, "not for you"
        )
        await asyncio.sleep(0.05)

        assert received == []
        await subscription.close()

    @pytest.mark.asyncio
    async def test_subscribe_dedupes_redelivery(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles, conversation
    ) -> None:
        """Test that a redelivered insert reaches the viewer once."""
        received: List[MessageResponse] = []

        async def on_message(message: MessageResponse) -> None:
            received.append(message)

        subscription = await GetConversationMessagesService(test_db, feed).subscribe(
            conversation.id, on_message
        )
        message = await SendMessageService(test_db, feed).send_message(
            conversation.id, profiles["student"].id, "once"
        )
        await feed.publish("chat_messages", EventType.INSERT, [message])
        await asyncio.sleep(0.05)

        assert [m.id for m in received] == [message.id]
        await subscription.close()

    @pytest.mark.asyncio
    async def test_closed_subscription_stops_delivery(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles, conversation
    ) -> None:
        received: List[MessageResponse] = []

        async def on_message(message: MessageResponse) -> None:
            received.append(message)

        subscription = await GetConversationMessagesService(test_db, feed).subscribe(
            conversation.id, on_message
        )
        await subscription.close()
        await SendMessageService(test_db, feed).send_message(
            conversation.id, profiles["student"].id, "after leaving"
        )
        await asyncio.sleep(0.05)

        assert received == []
