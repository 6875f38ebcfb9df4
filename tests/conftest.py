"""Shared fixtures and in-memory fakes for the messaging gateway tests."""
from __future__ import annotations

import asyncio
import itertools
import json
import os
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

import pytest
from sqlalchemy import delete
from starlette.websockets import WebSocketDisconnect, WebSocketState

# Point the package at a dedicated sqlite database before anything imports it.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_tutoring_chat.db")

from tutoring_chat.database import Base, SessionLocal, engine  # noqa: E402
from tutoring_chat.models import Conversation, Message, MessageStatus, User  # noqa: E402
from tutoring_chat.schemas import MessageResponse  # noqa: E402
from tutoring_chat.services import ClientConnection, MessageStoreError  # noqa: E402


class FakeWebSocket:
    """Records outbound frames the way a Starlette socket would send them."""

    def __init__(self, client: tuple[str, int] = ("testclient", 50000)) -> None:
        self.client = client
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict[str, Any]] = []
        self.close_code: int | None = None
        self.fail_sends = False
        self.inbound: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    async def accept(self) -> None:
        pass

    async def receive(self) -> dict[str, Any]:
        return await self.inbound.get()

    def push(self, payload: dict[str, Any]) -> None:
        """Queue an inbound text frame for the gateway to read."""

        self.inbound.put_nowait({"type": "websocket.receive", "text": json.dumps(payload)})

    def hang_up(self) -> None:
        self.inbound.put_nowait({"type": "websocket.disconnect", "code": 1000})

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise WebSocketDisconnect(code=1006)
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.application_state = WebSocketState.DISCONNECTED
        self.close_code = code

    def drop(self) -> None:
        """Simulate the peer vanishing without a close handshake."""

        self.client_state = WebSocketState.DISCONNECTED

    def frames(self, frame_type: str) -> list[dict[str, Any]]:
        return [frame for frame in self.sent if frame.get("type") == frame_type]


class FakeMessageStore:
    """In-memory :class:`MessageStore` with forward-only status updates."""

    def __init__(self) -> None:
        self.messages: dict[int, MessageResponse] = {}
        self.status_updates: list[tuple[int, MessageStatus]] = []
        self.fail_writes = False
        self._ids = itertools.count(1)

    async def create_message(
        self,
        conversation_id: int,
        sender_id: int,
        receiver_id: int,
        content: str,
        status: MessageStatus = MessageStatus.SENT,
    ) -> MessageResponse:
        if self.fail_writes:
            raise MessageStoreError("database is unavailable")
        message = MessageResponse(
            id=next(self._ids),
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            status=status,
            sent_at=datetime.now(timezone.utc),
        )
        self.messages[message.id] = message
        return message

    async def get_message(self, message_id: int) -> MessageResponse | None:
        return self.messages.get(message_id)

    async def update_message_status(self, message_id: int, status: MessageStatus) -> MessageResponse | None:
        if self.fail_writes:
            raise MessageStoreError("database is unavailable")
        self.status_updates.append((message_id, status))
        message = self.messages.get(message_id)
        if message is None:
            return None
        if message.status.advances_to(status):
            message = message.model_copy(update={"status": status})
            self.messages[message_id] = message
        return message


@pytest.fixture
def fake_store() -> FakeMessageStore:
    return FakeMessageStore()


@pytest.fixture
def fake_socket() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def connection_factory() -> Callable[..., ClientConnection]:
    def _factory(user_id: int | None = None) -> ClientConnection:
        connection = ClientConnection(FakeWebSocket())
        connection.user_id = user_id
        return connection

    return _factory


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(Message))
        session.execute(delete(Conversation))
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def user_factory(clean_database) -> Callable[..., User]:
    def _factory(username: str, role: str = "student") -> User:
        with SessionLocal() as session:
            user = User(username=username, full_name=username.title(), role=role)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    return _factory


@pytest.fixture
def conversation_factory(clean_database) -> Callable[[User, User], Conversation]:
    def _factory(one: User, two: User) -> Conversation:
        with SessionLocal() as session:
            conversation = Conversation(participant_one_id=one.id, participant_two_id=two.id)
            session.add(conversation)
            session.commit()
            session.refresh(conversation)
            return conversation

    return _factory
