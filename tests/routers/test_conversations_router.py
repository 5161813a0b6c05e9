from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.exceptions import (
    ConflictError,
    InvalidConversationError,
    InvalidMessageError,
    NotFoundError,
    NotParticipantError,
)
from app.main import app
from app.models.api.conversations import (
    ConversationResponse,
    ConversationSummary,
    ParticipantProfile,
)
from app.models.api.messages import MessageResponse

DIRECTORY = "app.services.conversation_directory_service.ConversationDirectoryService"
SEND = "app.services.send_message_service.SendMessageService.send_message"
MESSAGES = (
    "app.services.get_conversation_messages_service"
    ".GetConversationMessagesService.get_conversation_messages"
)
MARK_READ = "app.services.mark_messages_read_service.MarkMessagesReadService.mark_read"


class TestConversationsRouter:
    """Unit tests for the conversations router endpoints."""

    @pytest.fixture
    def client(self) -> TestClient:
        """Test client for FastAPI app."""
        return TestClient(app)

    @pytest.fixture
    def conversation(self) -> ConversationResponse:
        now = datetime.now(timezone.utc)
        return ConversationResponse(
            id=uuid4(),
            mentor_id=uuid4(),
            student_id=uuid4(),
            created_at=now,
            updated_at=now,
        )

    def test_missing_actor_header(self, client: TestClient) -> None:
        response = client.get("/api/conversations")
        assert response.status_code == 422

    def test_find_or_create(
        self, client: TestClient, conversation: ConversationResponse
    ) -> None:
        with patch(
            f"{DIRECTORY}.find_or_create", new_callable=AsyncMock, return_value=conversation
        ) as mock_find:
            response = client.post(
                "/api/conversations",
                json={
                    "mentor_id": str(conversation.mentor_id),
                    "student_id": str(conversation.student_id),
                },
                headers={"X-User-Id": str(conversation.student_id)},
            )

        assert response.status_code == 200
        assert response.json()["id"] == str(conversation.id)
        mock_find.assert_awaited_once_with(
            mentor_id=conversation.mentor_id,
            student_id=conversation.student_id,
            mentorship_request_id=None,
        )

    def test_find_or_create_by_outsider(
        self, client: TestClient, conversation: ConversationResponse
    ) -> None:
        """Test that only one of the two parties may open the conversation."""
        with patch(f"{DIRECTORY}.find_or_create", new_callable=AsyncMock) as mock_find:
            response = client.post(
                "/api/conversations",
                json={
                    "mentor_id": str(conversation.mentor_id),
                    "student_id": str(conversation.student_id),
                },
                headers={"X-User-Id": str(uuid4())},
            )

        assert response.status_code == 403
        mock_find.assert_not_awaited()

    @pytest.mark.parametrize(
        "error, status_code",
        [
            (InvalidConversationError("same party"), 400),
            (NotFoundError("no profile"), 404),
            (ConflictError("contention"), 409),
            (RuntimeError("boom"), 500),
        ],
    )
    def test_find_or_create_errors(
        self,
        client: TestClient,
        conversation: ConversationResponse,
        error: Exception,
        status_code: int,
    ) -> None:
        with patch(f"{DIRECTORY}.find_or_create", new_callable=AsyncMock, side_effect=error):
            response = client.post(
                "/api/conversations",
                json={
                    "mentor_id": str(conversation.mentor_id),
                    "student_id": str(conversation.student_id),
                },
                headers={"X-User-Id": str(conversation.mentor_id)},
            )

        assert response.status_code == status_code

    def test_list_conversations(
        self, client: TestClient, conversation: ConversationResponse
    ) -> None:
        summary = ConversationSummary(
            **conversation.model_dump(),
            other_user=ParticipantProfile(id=conversation.mentor_id, full_name="Maya Mentor"),
            unread_count=2,
        )
        with patch(
            f"{DIRECTORY}.list_for_user", new_callable=AsyncMock, return_value=[summary]
        ) as mock_list:
            response = client.get(
                "/api/conversations?limit=10&offset=5",
                headers={"X-User-Id": str(conversation.student_id)},
            )

        assert response.status_code == 200
        [item] = response.json()
        assert item["other_user"]["full_name"] == "Maya Mentor"
        assert item["unread_count"] == 2
        assert item["last_message"] is None
        mock_list.assert_awaited_once_with(conversation.student_id, limit=10, offset=5)

    def test_list_conversations_invalid_limit(self, client: TestClient) -> None:
        response = client.get(
            "/api/conversations?limit=0", headers={"X-User-Id": str(uuid4())}
        )
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error, status_code",
        [(NotFoundError("missing"), 404), (NotParticipantError("outsider"), 403)],
    )
    def test_get_conversation_errors(
        self, client: TestClient, error: Exception, status_code: int
    ) -> None:
        with patch(
            f"{DIRECTORY}.get_conversation", new_callable=AsyncMock, side_effect=error
        ):
            response = client.get(
                f"/api/conversations/{uuid4()}", headers={"X-User-Id": str(uuid4())}
            )

        assert response.status_code == status_code

    def test_get_messages(self, client: TestClient) -> None:
        conversation_id = uuid4()
        message = MessageResponse(
            id=uuid4(),
            conversation_id=conversation_id,
            sender_id=uuid4(),
            body="hello",
            is_read=False,
            created_at=datetime.now(timezone.utc),
        )
        with patch(MESSAGES, new_callable=AsyncMock, return_value=[message]):
            response = client.get(
                f"/api/conversations/{conversation_id}/messages",
                headers={"X-User-Id": str(uuid4())},
            )

        assert response.status_code == 200
        assert [m["body"] for m in response.json()] == ["hello"]

    def test_get_messages_as_outsider(self, client: TestClient) -> None:
        with patch(
            MESSAGES, new_callable=AsyncMock, side_effect=NotParticipantError("outsider")
        ):
            response = client.get(
                f"/api/conversations/{uuid4()}/messages",
                headers={"X-User-Id": str(uuid4())},
            )

        assert response.status_code == 403

    def test_send_message(self, client: TestClient) -> None:
        conversation_id = uuid4()
        sender_id = uuid4()
        sent = MessageResponse(
            id=uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            body="Hi",
            is_read=False,
            created_at=datetime.now(timezone.utc),
        )
        with patch(SEND, new_callable=AsyncMock, return_value=sent) as mock_send:
            response = client.post(
                f"/api/conversations/{conversation_id}/messages",
                json={"body": "  Hi  "},
                headers={"X-User-Id": str(sender_id)},
            )

        assert response.status_code == 200
        assert response.json()["id"] == str(sent.id)
        mock_send.assert_awaited_once_with(conversation_id, sender_id, "Hi", None)

    @pytest.mark.parametrize(
        "payload",
        [
            {"body": "x" * 1001},
            {"body": "", "file_url": "ftp://files.example.com/a.pdf"},
        ],
    )
    def test_send_message_rejected_payload(self, client: TestClient, payload) -> None:
        with patch(SEND, new_callable=AsyncMock) as mock_send:
            response = client.post(
                f"/api/conversations/{uuid4()}/messages",
                json=payload,
                headers={"X-User-Id": str(uuid4())},
            )

        assert response.status_code == 422
        mock_send.assert_not_awaited()

    @pytest.mark.parametrize(
        "error, status_code",
        [
            (InvalidMessageError("empty"), 400),
            (NotFoundError("missing"), 404),
            (NotParticipantError("outsider"), 403),
            (RuntimeError("db down"), 500),
        ],
    )
    def test_send_message_errors(
        self, client: TestClient, error: Exception, status_code: int
    ) -> None:
        with patch(SEND, new_callable=AsyncMock, side_effect=error):
            response = client.post(
                f"/api/conversations/{uuid4()}/messages",
                json={"body": ""},
                headers={"X-User-Id": str(uuid4())},
            )

        assert response.status_code == status_code

    def test_mark_read(self, client: TestClient) -> None:
        with patch(MARK_READ, new_callable=AsyncMock, return_value=3):
            response = client.post(
                f"/api/conversations/{uuid4()}/read",
                headers={"X-User-Id": str(uuid4())},
            )

        assert response.status_code == 200
        assert response.json() == {"updated": 3}
