"""Tests for message persistence and the async SQL-backed store."""
from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from tutoring_chat.database import SessionLocal
from tutoring_chat.models import Conversation, Message, MessageStatus
from tutoring_chat.services import (
    MessageStoreError,
    SqlMessageStore,
    create_message,
    list_messages,
    mark_conversation_read,
    update_message_status,
)


@pytest.fixture
def thread(user_factory, conversation_factory):
    student = user_factory("student-sam")
    tutor = user_factory("tutor-tia", role="tutor")
    conversation = conversation_factory(student, tutor)
    return student, tutor, conversation


def test_create_message_defaults_to_sent_and_bumps_conversation(thread) -> None:
    student, tutor, conversation = thread

    with SessionLocal() as db:
        before = db.get(Conversation, conversation.id).last_message_at
        message = create_message(
            db,
            conversation_id=conversation.id,
            sender_id=student.id,
            receiver_id=tutor.id,
            content="Can we move Thursday's session?",
        )
        refreshed = db.get(Conversation, conversation.id)

    assert message.id is not None
    assert message.status == MessageStatus.SENT
    assert message.sent_at is not None
    assert refreshed.last_message_at is not None
    assert before is not None


@pytest.mark.parametrize(
    "steps, expected",
    [
        ([MessageStatus.DELIVERED], MessageStatus.DELIVERED),
        ([MessageStatus.DELIVERED, MessageStatus.READ], MessageStatus.READ),
        ([MessageStatus.READ, MessageStatus.DELIVERED], MessageStatus.READ),
        ([MessageStatus.READ, MessageStatus.SENT], MessageStatus.READ),
        ([MessageStatus.READ, MessageStatus.READ], MessageStatus.READ),
    ],
)
def test_status_only_moves_forward(thread, steps, expected) -> None:
    student, tutor, conversation = thread

    with SessionLocal() as db:
        message = create_message(
            db,
            conversation_id=conversation.id,
            sender_id=student.id,
            receiver_id=tutor.id,
            content="hello",
        )
        for step in steps:
            update_message_status(db, message.id, step)

    with SessionLocal() as db:
        assert update_message_status(db, message.id, MessageStatus.SENT).status == expected


def test_update_status_of_missing_message_returns_none(clean_database) -> None:
    with SessionLocal() as db:
        assert update_message_status(db, 12345, MessageStatus.READ) is None


def test_stale_delivered_update_never_overwrites_read(thread) -> None:
    student, tutor, conversation = thread

    with SessionLocal() as writer:
        message = create_message(
            writer,
            conversation_id=conversation.id,
            sender_id=student.id,
            receiver_id=tutor.id,
            content="hello",
        )

    with SessionLocal() as delivering, SessionLocal() as reading:
        # The delivering session still holds the message as "sent" when the reader commits "read".
        stale = delivering.get(Message, message.id)
        assert stale.status == MessageStatus.SENT

        update_message_status(reading, message.id, MessageStatus.READ)
        result = update_message_status(delivering, message.id, MessageStatus.DELIVERED)

    assert result.status == MessageStatus.READ
    with SessionLocal() as db:
        assert db.get(Message, message.id).status == MessageStatus.READ


def test_list_and_mark_conversation_read(thread) -> None:
    student, tutor, conversation = thread

    with SessionLocal() as db:
        for content in ("first", "second"):
            create_message(
                db,
                conversation_id=conversation.id,
                sender_id=student.id,
                receiver_id=tutor.id,
                content=content,
            )
        create_message(
            db,
            conversation_id=conversation.id,
            sender_id=tutor.id,
            receiver_id=student.id,
            content="reply",
        )

        changed = mark_conversation_read(db, conversation_id=conversation.id, reader_id=tutor.id)
        again = mark_conversation_read(db, conversation_id=conversation.id, reader_id=tutor.id)
        messages = list_messages(db, conversation_id=conversation.id)

    assert [message.content for message in changed] == ["first", "second"]
    assert again == []
    assert [message.content for message in messages] == ["first", "second", "reply"]
    assert [message.status for message in messages] == ["read", "read", "sent"]


def test_sqlalchemy_failures_become_store_errors(thread, monkeypatch) -> None:
    student, tutor, conversation = thread

    with SessionLocal() as db:
        def _broken_commit() -> None:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", _broken_commit)
        with pytest.raises(MessageStoreError):
            create_message(
                db,
                conversation_id=conversation.id,
                sender_id=student.id,
                receiver_id=tutor.id,
                content="lost",
            )


def test_sql_store_round_trip(thread) -> None:
    student, tutor, conversation = thread
    store = SqlMessageStore()

    async def scenario():
        created = await store.create_message(conversation.id, student.id, tutor.id, "See you at 5")
        delivered = await store.update_message_status(created.id, MessageStatus.DELIVERED)
        fetched = await store.get_message(created.id)
        missing = await store.get_message(created.id + 1000)
        return created, delivered, fetched, missing

    created, delivered, fetched, missing = asyncio.run(scenario())

    assert created.status is MessageStatus.SENT
    assert created.sender_id == student.id
    assert delivered.status is MessageStatus.DELIVERED
    assert fetched.status is MessageStatus.DELIVERED
    assert missing is None
