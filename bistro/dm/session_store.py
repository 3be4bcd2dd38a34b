from typing import Dict, Optional

from bistro.dm.conversation_state import ConversationState


class InMemorySessionStore:
    def __init__(self):
        self._data: Dict[str, ConversationState] = {}

    def get(self, session_id: str) -> Optional[ConversationState]:
        return self._data.get(session_id)

    def get_or_create(self, session_id: str) -> ConversationState:
        return self._data.setdefault(session_id, ConversationState(conversation_id=session_id))

    def set(self, session_id: str, state: ConversationState) -> None:
        self._data[session_id] = state

    def clear(self, session_id: str) -> None:
        self._data.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._data
