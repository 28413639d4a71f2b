"""
SQLAlchemy models for persisted chats and their messages.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Chat(Base):
    __tablename__ = "chats"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    # Bumped on every transcript replacement; guards against concurrent turns
    version = Column(Integer, default=0, nullable=False)

    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="Message.position",
    )

    __table_args__ = (Index("ix_chats_user_id", "user_id"),)


class Message(Base):
    __tablename__ = "messages"

    row_id = Column(Integer, primary_key=True, autoincrement=True)
    # Client-supplied message id; only unique within its chat
    id = Column(String(64), nullable=False)
    chat_id = Column(String(64), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(32), nullable=False)
    parts = Column(JSON, nullable=False)
    position = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    chat = relationship("Chat", back_populates="messages")

    __table_args__ = (
        UniqueConstraint("chat_id", "position", name="uq_messages_chat_position"),
        Index("ix_messages_chat_message", "chat_id", "id"),
    )
