"""Conversation and message history routes."""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import MessageStatus, User
from ..schemas import (
    ConversationCreate,
    ConversationMessageCreate,
    ConversationResponse,
    ConversationSummary,
    MessageResponse,
    UserResponse,
)
from ..services import (
    ChatGateway,
    MessageStoreError,
    create_conversation,
    create_message,
    get_chat_gateway,
    get_conversation_by_participants,
    get_current_user,
    list_conversations_for_user,
    list_messages,
    mark_conversation_read,
    require_participant,
)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ConversationSummary])
def list_conversations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> List[ConversationSummary]:
    overviews = list_conversations_for_user(db, current_user.id)
    return [
        ConversationSummary(
            **ConversationResponse.model_validate(item.conversation).model_dump(),
            other_participant=UserResponse.model_validate(item.other_participant),
            last_message=MessageResponse.model_validate(item.last_message) if item.last_message else None,
        )
        for item in overviews
    ]


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
def start_conversation(
    payload: ConversationCreate,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ConversationResponse:
    if current_user.id not in {payload.participant_one_id, payload.participant_two_id}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only create conversations that include yourself",
        )
    if payload.participant_one_id == payload.participant_two_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A conversation needs two participants")

    existing = get_conversation_by_participants(db, payload.participant_one_id, payload.participant_two_id)
    if existing is not None:
        response.status_code = status.HTTP_200_OK
        return ConversationResponse.model_validate(existing)

    conversation = create_conversation(
        db,
        participant_one_id=payload.participant_one_id,
        participant_two_id=payload.participant_two_id,
    )
    return ConversationResponse.model_validate(conversation)


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def conversation_messages(
    conversation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> List[MessageResponse]:
    """Return the thread oldest first and mark the caller's unread messages as read."""

    require_participant(db, conversation_id=conversation_id, user_id=current_user.id)
    try:
        newly_read = mark_conversation_read(db, conversation_id=conversation_id, reader_id=current_user.id)
        messages = list_messages(db, conversation_id=conversation_id)
    except MessageStoreError as exc:
        logger.exception("Failed to load conversation %s", conversation_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error") from exc

    for message in newly_read:
        await gateway.protocol.notify_read(MessageResponse.model_validate(message))

    return [MessageResponse.model_validate(message) for message in messages]


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_conversation_message(
    conversation_id: int,
    payload: ConversationMessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> MessageResponse:
    conversation = require_participant(db, conversation_id=conversation_id, user_id=current_user.id)
    try:
        record = create_message(
            db,
            conversation_id=conversation_id,
            sender_id=current_user.id,
            receiver_id=conversation.other_participant_id(current_user.id),
            content=payload.content,
        )
    except MessageStoreError as exc:
        logger.exception("Failed to persist message in conversation %s", conversation_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to persist message") from exc

    message = MessageResponse.model_validate(record)
    if await gateway.protocol.deliver(message):
        message = message.model_copy(update={"status": MessageStatus.DELIVERED})
    return message


__all__ = ["router"]
