import logging
import queue
import threading
from typing import Any, Dict, Set

logger = logging.getLogger(__name__)

NEW_MESSAGE = "newMessage"


class PushChannel:
    """
    In-process pub/sub keyed by conversation id.

    Each subscriber gets its own queue; `emit` fans an event out to every
    queue in the conversation's room. The SSE route drains one queue per
    connected browser.
    """

    def __init__(self):
        # Active rooms: {conversation_id: set of subscriber queues}
        self.rooms: Dict[str, Set[queue.Queue]] = {}
        self._lock = threading.Lock()

    def join(self, conversation_id: str) -> queue.Queue:
        q: queue.Queue = queue.Queue()
        with self._lock:
            self.rooms.setdefault(conversation_id, set()).add(q)
        logger.info(f"Client joined conversation {conversation_id}")
        return q

    def leave(self, conversation_id: str, q: queue.Queue):
        with self._lock:
            room = self.rooms.get(conversation_id)
            if room is None:
                return
            room.discard(q)
            if not room:
                del self.rooms[conversation_id]
        logger.info(f"Client left conversation {conversation_id}")

    def emit(self, conversation_id: str, event: str, payload: Any) -> int:
        """Returns the number of subscribers the event was delivered to."""
        with self._lock:
            subscribers = list(self.rooms.get(conversation_id, ()))
        for q in subscribers:
            q.put({"event": event, "data": payload})
        return len(subscribers)

    def subscriber_count(self, conversation_id: str) -> int:
        with self._lock:
            return len(self.rooms.get(conversation_id, ()))
