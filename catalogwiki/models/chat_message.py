"""Chat message model backing conversational model memory."""

from sqlalchemy import Column, Index, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ..database import Base


class ChatMessage(Base):
    """One turn of a conversation with the model, oldest first by id."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_conversation_id", "conversation_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(String(50), nullable=False)

    # Allowed values: user, assistant
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
