"""In-memory conversation history for the Slack bot."""

import threading
from collections import OrderedDict
from typing import Dict, List, Optional

from legacy_ops.config import get_settings


def session_key(user: str, channel: str) -> str:
    return f"{user}-{channel}"


class ConversationStore:
    """
    Bounded LRU of chat sessions.

    Each session keeps at most max_turns messages (oldest dropped first).
    When more than capacity sessions exist, the least recently used one is
    evicted. Slack Bolt runs handlers on worker threads, so access is locked.
    """

    def __init__(self, capacity: Optional[int] = None, max_turns: Optional[int] = None):
        settings = get_settings()
        self.capacity = capacity if capacity is not None else settings.conversation_capacity
        self.max_turns = max_turns if max_turns is not None else settings.conversation_max_turns
        self._sessions: "OrderedDict[str, List[Dict[str, str]]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: str) -> bool:
        return key in self._sessions

    def append(self, key: str, role: str, content: str) -> List[Dict[str, str]]:
        """Add a turn and return a copy of the session history."""
        with self._lock:
            history = self._sessions.pop(key, [])
            history.append({"role": role, "content": content})
            del history[: max(0, len(history) - self.max_turns)]
            self._sessions[key] = history
            while len(self._sessions) > self.capacity:
                self._sessions.popitem(last=False)
            return list(history)

    def history(self, key: str) -> List[Dict[str, str]]:
        with self._lock:
            if key not in self._sessions:
                return []
            self._sessions.move_to_end(key)
            return list(self._sessions[key])

    def clear(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._sessions.clear()
            else:
                self._sessions.pop(key, None)
