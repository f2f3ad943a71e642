import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Deque, Dict, Tuple

from travelchat.graph.graph import ResponseOrchestrator
from travelchat.llm.fallback import APOLOGY
from travelchat.store import MessageStore

logger = logging.getLogger(__name__)


class ChatService:
    """
    Stores the user turn and returns right away; the assistant reply is
    produced on a worker thread and delivered through the store's push
    channel.

    Each conversation has a queue of pending replies and at most one pool
    job working on it, so replies run one at a time and each sees the full
    history that came before it. A worker never blocks on another
    conversation's queue, so different conversations do not wait on each
    other.
    """

    def __init__(self, store: MessageStore, orchestrator: ResponseOrchestrator, workers: int = 4):
        self.store = store
        self.orchestrator = orchestrator
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reply")
        # head of each queue is the reply in progress; a key exists only while work is pending
        self._queues: Dict[str, Deque[Future]] = {}
        self._guard = threading.Lock()

    def send_message(self, conversation_id: str, content: str, message_type: str = "text") -> Tuple[dict, Future]:
        message = self.store.create_message(conversation_id, content, role="user", message_type=message_type)

        future: Future = Future()
        with self._guard:
            queue = self._queues.get(conversation_id)
            if queue is None:
                self._queues[conversation_id] = deque([future])
                self.executor.submit(self._run_next, conversation_id)
            else:
                queue.append(future)
        return message, future

    def _run_next(self, conversation_id: str):
        with self._guard:
            future = self._queues[conversation_id][0]

        result, error = None, None
        if future.set_running_or_notify_cancel():
            try:
                result = self._reply(conversation_id)
            except Exception as e:
                logger.error(f"Could not store reply for conversation {conversation_id}: {e}")
                error = e

        with self._guard:
            queue = self._queues[conversation_id]
            queue.popleft()
            if queue:
                self.executor.submit(self._run_next, conversation_id)
            else:
                del self._queues[conversation_id]

        if future.running():
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

    def _reply(self, conversation_id: str) -> dict:
        try:
            history = self.store.list_turns(conversation_id)
            reply = self.orchestrator.respond(history)
            return self.store.create_message(conversation_id, reply, role="assistant")
        except Exception as e:
            logger.error(f"Error generating AI response for conversation {conversation_id}: {e}")
            return self.store.create_message(conversation_id, APOLOGY, role="assistant")

    def pending_conversations(self) -> int:
        with self._guard:
            return len(self._queues)

    def shutdown(self, wait: bool = True):
        # queued replies are chained one job at a time, so drain them before the pool stops accepting work
        while wait:
            with self._guard:
                pending = [f for queue in self._queues.values() for f in queue]
            if not pending:
                break
            wait_futures(pending)
        self.executor.shutdown(wait=wait)
