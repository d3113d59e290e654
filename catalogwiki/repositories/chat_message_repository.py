"""Chat message repository: append and windowed reads per conversation."""

from typing import List

from ..models import ChatMessage


class ChatMessageRepository:
    """Stores conversation turns for the conversational model variant."""

    def __init__(self, db):
        self.db = db

    def append(self, conversation_id: str, role: str, content: str) -> ChatMessage:
        message = ChatMessage(conversation_id=conversation_id, role=role, content=content)
        self.db.add(message)
        self.db.flush()
        return message

    def latest(self, conversation_id: str, limit: int) -> List[ChatMessage]:
        """Return the newest *limit* messages, oldest first."""
        rows = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.id.desc())
            .limit(limit)
            .all()
        )
        return list(reversed(rows))

    def prune(self, conversation_id: str, keep: int) -> int:
        """Delete all but the newest *keep* messages. Returns the count removed."""
        keep_ids = [m.id for m in self.latest(conversation_id, keep)]
        query = self.db.query(ChatMessage).filter(ChatMessage.conversation_id == conversation_id)
        if keep_ids:
            query = query.filter(ChatMessage.id.notin_(keep_ids))
        return query.delete(synchronize_session=False)
