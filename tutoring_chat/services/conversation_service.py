"""Conversation and user lookups used by the messaging endpoints."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, status
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Conversation, Message, User


@dataclass(frozen=True, slots=True)
class ConversationOverview:
    """A conversation seen from one participant's side."""

    conversation: Conversation
    other_participant: User
    last_message: Message | None


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_conversation(db: Session, conversation_id: int) -> Conversation | None:
    return db.get(Conversation, conversation_id)


def require_participant(db: Session, *, conversation_id: int, user_id: int) -> Conversation:
    """Return the conversation or raise 404/403 for missing or foreign threads."""

    conversation = get_conversation(db, conversation_id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    if not conversation.involves(user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not part of this conversation")
    return conversation


def get_conversation_by_participants(db: Session, user_one_id: int, user_two_id: int) -> Conversation | None:
    stmt = select(Conversation).where(
        or_(
            and_(Conversation.participant_one_id == user_one_id, Conversation.participant_two_id == user_two_id),
            and_(Conversation.participant_one_id == user_two_id, Conversation.participant_two_id == user_one_id),
        )
    )
    return db.scalars(stmt).first()


def create_conversation(db: Session, *, participant_one_id: int, participant_two_id: int) -> Conversation:
    for participant_id in (participant_one_id, participant_two_id):
        if get_user(db, participant_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {participant_id} not found")

    conversation = Conversation(participant_one_id=participant_one_id, participant_two_id=participant_two_id)
    try:
        db.add(conversation)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create conversation") from exc

    db.refresh(conversation)
    return conversation


def list_conversations_for_user(db: Session, user_id: int) -> list[ConversationOverview]:
    """Return the user's conversations, most recently active first."""

    stmt = (
        select(Conversation)
        .where(or_(Conversation.participant_one_id == user_id, Conversation.participant_two_id == user_id))
        .order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
    )
    overviews: list[ConversationOverview] = []
    for conversation in db.scalars(stmt):
        other = get_user(db, conversation.other_participant_id(user_id))
        if other is None:
            continue
        last_message = db.scalars(
            select(Message)
            .where(Message.conversation_id == conversation.id)
            .order_by(Message.sent_at.desc(), Message.id.desc())
            .limit(1)
        ).first()
        overviews.append(ConversationOverview(conversation, other, last_message))
    return overviews


__all__ = [
    "ConversationOverview",
    "get_user",
    "get_conversation",
    "require_participant",
    "get_conversation_by_participants",
    "create_conversation",
    "list_conversations_for_user",
]
