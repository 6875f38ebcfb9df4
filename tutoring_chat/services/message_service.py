"""Messaging persistence helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Conversation, Message, MessageStatus


class MessageStoreError(RuntimeError):
    """Raised when a message cannot be read from or written to the database."""


def create_message(
    db: Session,
    *,
    conversation_id: int,
    sender_id: int,
    receiver_id: int,
    content: str,
    status: MessageStatus = MessageStatus.SENT,
) -> Message:
    """Persist a message and bump the owning conversation's activity timestamp."""

    message = Message(
        conversation_id=conversation_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        status=MessageStatus(status).value,
    )

    try:
        db.add(message)
        conversation = db.get(Conversation, conversation_id)
        if conversation is not None:
            conversation.last_message_at = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise MessageStoreError("Failed to persist message") from exc

    db.refresh(message)
    return message


def get_message(db: Session, message_id: int) -> Message | None:
    try:
        return db.get(Message, message_id)
    except SQLAlchemyError as exc:
        raise MessageStoreError(f"Failed to load message {message_id}") from exc


def update_message_status(db: Session, message_id: int, status: MessageStatus) -> Message | None:
    """Advance a message's delivery status.

    The guard and the write are one conditional ``UPDATE`` so a concurrent
    writer that already moved the row further (for example to ``read``) is
    never overwritten by a stale ``delivered``. Returns ``None`` when the
    message does not exist.
    """

    target = MessageStatus(status)
    behind = [candidate.value for candidate in MessageStatus if candidate.advances_to(target)]
    stmt = (
        update(Message)
        .where(Message.id == message_id, Message.status.in_(behind))
        .values(status=target.value)
        .execution_options(synchronize_session=False)
    )
    try:
        if behind:
            db.execute(stmt)
            db.commit()
        return db.get(Message, message_id, populate_existing=True)
    except SQLAlchemyError as exc:
        db.rollback()
        raise MessageStoreError(f"Failed to update status of message {message_id}") from exc


def list_messages(db: Session, *, conversation_id: int) -> list[Message]:
    """Return messages for the provided conversation ordered chronologically."""

    stmt = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.sent_at.asc(), Message.id.asc())
    )
    try:
        return list(db.scalars(stmt))
    except SQLAlchemyError as exc:
        raise MessageStoreError(f"Failed to list messages for conversation {conversation_id}") from exc


def mark_conversation_read(db: Session, *, conversation_id: int, reader_id: int) -> list[Message]:
    """Mark every unread message addressed to ``reader_id`` as read.

    Returns the messages whose status changed.
    """

    stmt = select(Message).where(
        Message.conversation_id == conversation_id,
        Message.receiver_id == reader_id,
        Message.status != MessageStatus.READ.value,
    )
    try:
        unread = list(db.scalars(stmt))
        for message in unread:
            message.status = MessageStatus.READ.value
        if unread:
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise MessageStoreError(f"Failed to mark conversation {conversation_id} as read") from exc

    return unread


__all__ = [
    "MessageStoreError",
    "create_message",
    "get_message",
    "update_message_status",
    "list_messages",
    "mark_conversation_read",
]
