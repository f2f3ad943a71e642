import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from travelchat.graph.state import ConversationTurn
from travelchat.models import MESSAGE_TYPES, Conversation, Message
from travelchat.push import NEW_MESSAGE, PushChannel

logger = logging.getLogger(__name__)

TITLE_LENGTH = 50


class MessageStore:
    """
    Conversation persistence. Every created message is also emitted as a
    `newMessage` event on the push channel, when one is attached.
    """

    def __init__(self, session_factory, push: Optional[PushChannel] = None):
        self.session_factory = session_factory
        self.push = push

    def create_message(
        self,
        conversation_id: str,
        content: str,
        role: str = "user",
        message_type: str = "text",
        meta: Optional[dict] = None,
    ) -> dict:
        # clients cannot post system messages; anything unknown is plain text
        if message_type not in MESSAGE_TYPES:
            message_type = "text"

        try:
            data = self._insert(conversation_id, content, role, message_type, meta)
        except IntegrityError:
            # another writer created the conversation between our read and commit
            logger.info(f"Conversation {conversation_id} was created concurrently, retrying")
            data = self._insert(conversation_id, content, role, message_type, meta)

        if self.push is not None:
            self.push.emit(conversation_id, NEW_MESSAGE, data)
        return data

    def _insert(self, conversation_id: str, content: str, role: str, message_type: str, meta: Optional[dict]) -> dict:
        db = self.session_factory()
        try:
            conv = db.get(Conversation, conversation_id)
            if not conv:
                title = content.strip()[:TITLE_LENGTH] if role == "user" else "New conversation"
                conv = Conversation(id=conversation_id, title=title or "New conversation")
                db.add(conv)
                db.flush()

            msg = Message(
                conversation_id=conversation_id,
                role=role,
                content=content,
                message_type=message_type,
                meta=meta or {},
            )
            db.add(msg)
            conv.updated_at = datetime.now(timezone.utc)
            db.commit()
            return msg.to_dict()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _messages(self, db, conversation_id: str) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at)
        )
        return list(db.scalars(stmt))

    def list_messages(self, conversation_id: str) -> List[dict]:
        db = self.session_factory()
        try:
            return [m.to_dict() for m in self._messages(db, conversation_id)]
        finally:
            db.close()

    def list_turns(self, conversation_id: str) -> List[ConversationTurn]:
        db = self.session_factory()
        try:
            return [
                ConversationTurn(role=m.role, content=m.content, created_at=m.created_at)
                for m in self._messages(db, conversation_id)
            ]
        finally:
            db.close()

    def delete_message(self, message_id: str) -> bool:
        db = self.session_factory()
        try:
            msg = db.get(Message, message_id)
            if msg is None:
                return False
            db.delete(msg)
            db.commit()
            return True
        finally:
            db.close()

    def clear_history(self, conversation_id: str) -> int:
        db = self.session_factory()
        try:
            count = db.scalar(
                select(func.count()).select_from(Message).where(Message.conversation_id == conversation_id)
            )
            db.execute(delete(Message).where(Message.conversation_id == conversation_id))
            db.commit()
            logger.info(f"Cleared {count} messages from conversation {conversation_id}")
            return count or 0
        finally:
            db.close()
