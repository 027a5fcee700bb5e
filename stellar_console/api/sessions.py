"""Conversation bookkeeping for the HTTP layer."""

import logging
from collections import OrderedDict
from typing import Iterable, Optional

from ..conversation import Conversation, PlannerFactory
from ..exceptions import ConversationBusyError
from ..transcript.models import Message

logger = logging.getLogger(__name__)


class SessionManager:
    """Tracks conversations by chat id and enforces one active run per id.

    The client owns the transcript and resends it with every request, so a
    new request replaces the stored conversation once its previous response
    has finished. Idle conversations beyond ``max_sessions`` are evicted
    oldest first.
    """

    def __init__(self, max_sessions: int = 100):
        self.max_sessions = max_sessions
        self._conversations: OrderedDict[str, Conversation] = OrderedDict()

    def get(self, chat_id: str) -> Optional[Conversation]:
        return self._conversations.get(chat_id)

    def __len__(self) -> int:
        return len(self._conversations)

    def start(
        self,
        chat_id: str,
        history: Iterable[Message],
        planner_factory: Optional[PlannerFactory] = None,
    ) -> Conversation:
        """Create the conversation that will answer the next user message.

        Raises:
            ConversationBusyError: The previous response for ``chat_id`` is
                still running.
        """
        existing = self._conversations.get(chat_id)
        if existing is not None and existing.busy:
            raise ConversationBusyError(f"Chat '{chat_id}' is still responding")

        conversation = Conversation(
            planner_factory=planner_factory,
            history=history,
            session_id=chat_id,
        )
        self._conversations[chat_id] = conversation
        self._conversations.move_to_end(chat_id)
        self._evict()
        return conversation

    def cancel(self, chat_id: str) -> bool:
        conversation = self._conversations.get(chat_id)
        return conversation.cancel() if conversation else False

    def cancel_all(self) -> int:
        """Cancel every running response; returns how many were cancelled."""
        return sum(1 for c in list(self._conversations.values()) if c.cancel())

    def _evict(self) -> None:
        for chat_id in list(self._conversations):
            if len(self._conversations) <= self.max_sessions:
                break
            if not self._conversations[chat_id].busy:
                logger.debug("Evicting idle conversation %s", chat_id)
                del self._conversations[chat_id]


# Process-wide session table
sessions = SessionManager()
