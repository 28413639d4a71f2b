"""
Chat persistence helpers.
Wraps a SQLAlchemy session with the chat and message operations used by the routes.
"""
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from models.api_models import Message, dump_part
from models.db_models import Chat, Message as MessageRow
from utils.logger import app_logger


class ChatNotFoundError(Exception):
    """The chat does not exist or belongs to another user."""


class ChatVersionConflictError(Exception):
    """The chat transcript changed since the current turn started."""


def generate_id() -> str:
    return uuid.uuid4().hex


class ChatStore:
    """Chat and message operations over one session (one unit of work)."""

    def __init__(self, session: Session):
        self.session = session

    def find_chat(self, chat_id: str) -> Optional[Chat]:
        """Look up a chat by id regardless of owner."""
        return self.session.get(Chat, chat_id)

    def get_chat(self, chat_id: str, user_id: str) -> Optional[Chat]:
        """Get a chat owned by user_id, with its messages in position order."""
        return self.session.scalar(
            select(Chat)
            .where(Chat.id == chat_id, Chat.user_id == user_id)
            .options(selectinload(Chat.messages))
        )

    def get_chats(self, user_id: str) -> List[Chat]:
        """Get all chats of a user, oldest first; messages are left unloaded."""
        return list(self.session.scalars(
            select(Chat).where(Chat.user_id == user_id).order_by(Chat.created_at)
        ))

    def create_chat(self, chat_id: str, user_id: str, title: str, messages: List[Message]) -> Chat:
        """Insert a new chat together with its initial messages."""
        chat = Chat(id=chat_id, user_id=user_id, title=title, version=0)
        self.session.add(chat)
        self.session.flush()
        self._insert_messages(chat_id, messages)
        app_logger.info(f"Created chat {chat_id} for user {user_id}: '{title}'")
        return chat

    def replace_messages(self, chat_id: str, messages: List[Message], expected_version: int) -> int:
        """
        Replace the full transcript of a chat.

        Existing rows are deleted and the given messages inserted with
        positions 0..n-1 in list order. The chat's version must still equal
        expected_version; it is incremented as part of the same transaction.

        Args:
            chat_id: Chat to update
            messages: Complete, ordered transcript
            expected_version: Version read when the turn started

        Returns:
            The new chat version

        Raises:
            ChatVersionConflictError: If another turn replaced the transcript first
        """
        result = self.session.execute(
            update(Chat)
            .where(Chat.id == chat_id, Chat.version == expected_version)
            .values(version=Chat.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ChatVersionConflictError(
                f"Chat {chat_id} changed since version {expected_version}"
            )

        self.session.execute(
            delete(MessageRow)
            .where(MessageRow.chat_id == chat_id)
            .execution_options(synchronize_session=False)
        )
        for loaded in list(self.session.identity_map.values()):
            if isinstance(loaded, MessageRow) and loaded.chat_id == chat_id:
                self.session.expunge(loaded)
        self._insert_messages(chat_id, messages)
        # Drop stale identity-map state so later reads see the new rows
        self.session.expire_all()

        app_logger.info(f"Saved {len(messages)} messages to chat {chat_id} (version {expected_version + 1})")
        return expected_version + 1

    def _insert_messages(self, chat_id: str, messages: List[Message]) -> None:
        now = datetime.now(timezone.utc)
        self.session.add_all([
            MessageRow(
                id=message.id or generate_id(),
                chat_id=chat_id,
                role=message.role,
                parts=[dump_part(part) for part in message.get_parts()],
                position=position,
                created_at=message.created_at or now,
            )
            for position, message in enumerate(messages)
        ])
        self.session.flush()

    @staticmethod
    def to_message(row: MessageRow) -> Message:
        """Convert a stored message row back to the API model."""
        message = Message.model_validate({
            "id": row.id,
            "role": row.role,
            "parts": row.parts,
            "createdAt": row.created_at,
        })
        message.content = message.text()
        return message
