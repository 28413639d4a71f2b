"""
Route handlers for reading stored chats.
"""
from typing import List

from fastapi import APIRouter, HTTPException, Request, status

from models.api_models import ChatDetail, ChatSummary
from services.chat_store import ChatStore
from utils.database import DatabaseManager

router = APIRouter()


@router.get("/api/chats", response_model=List[ChatSummary], response_model_by_alias=True)
async def list_chats(http_request: Request):
    """List the caller's chats, oldest first."""
    with DatabaseManager.session() as session:
        chats = ChatStore(session).get_chats(http_request.state.user_id)
        return [
            ChatSummary(id=chat.id, title=chat.title, created_at=chat.created_at)
            for chat in chats
        ]


@router.get("/api/chats/{chat_id}", response_model=ChatDetail, response_model_by_alias=True)
async def get_chat(chat_id: str, http_request: Request):
    """Get one of the caller's chats with its messages in order."""
    with DatabaseManager.session() as session:
        chat = ChatStore(session).get_chat(chat_id, http_request.state.user_id)
        if chat is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Chat not found or unauthorized",
            )
        return ChatDetail(
            id=chat.id,
            title=chat.title,
            created_at=chat.created_at,
            messages=[ChatStore.to_message(row) for row in chat.messages],
        )
