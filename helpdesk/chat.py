import threading
import uuid
from dataclasses import dataclass, field

from helpdesk.models import utcnow


@dataclass
class ChatMessage:
    id: str
    sender_id: str
    text: str
    timestamp: str
    # quem já leu (o remetente conta como leitor)
    read_by: set[str] = field(default_factory=set)

    def read_for(self, user_id: str) -> bool:
        return user_id in self.read_by


class ChatRoom:
    """Support chat kept only in process memory; restarting the API clears it."""

    def __init__(self):
        self._messages: list[ChatMessage] = []
        self._lock = threading.Lock()

    def post(self, sender_id: str, text: str) -> ChatMessage:
        text = (text or "").strip()
        if not text:
            raise ValueError("empty_message")
        msg = ChatMessage(
            id=str(uuid.uuid4()),
            sender_id=sender_id,
            text=text,
            timestamp=utcnow().isoformat(),
            read_by={sender_id},
        )
        with self._lock:
            self._messages.append(msg)
        return msg

    def messages(self) -> list[ChatMessage]:
        with self._lock:
            return list(self._messages)

    def unread_count(self, user_id: str) -> int:
        with self._lock:
            return sum(1 for m in self._messages if not m.read_for(user_id))

    def mark_read(self, user_id: str) -> int:
        n = 0
        with self._lock:
            for m in self._messages:
                if not m.read_for(user_id):
                    m.read_by.add(user_id)
                    n += 1
        return n

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()


room = ChatRoom()
