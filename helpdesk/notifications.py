import logging
import threading
import time
from typing import Callable

from helpdesk.config import NOTIFY_DELAY_MS
from helpdesk.models import ROLE_ADMIN

log = logging.getLogger(__name__)

TICKET_CREATED = "ticket.created"
CHAT_MESSAGE = "chat.message"

Listener = Callable[[str, dict], None]


def _log_listener(event: str, payload: dict) -> None:
    log.info("notificação %s %s", event, payload.get("id"))


class Notifier:
    """Fan-out of UI notification events (the "ding" of a new OS or message)."""

    def __init__(self, delay_ms: int = NOTIFY_DELAY_MS):
        self.delay_ms = delay_ms
        self._listeners: list[Listener] = [_log_listener]
        self._lock = threading.Lock()

    def subscribe(self, fn: Listener) -> None:
        with self._lock:
            self._listeners.append(fn)

    def unsubscribe(self, fn: Listener) -> None:
        with self._lock:
            if fn in self._listeners:
                self._listeners.remove(fn)

    def delay_for(self, role: str) -> float:
        # admin ouve na hora; usuário comum depois do alerta de confirmação
        if role == ROLE_ADMIN:
            return 0.0
        return self.delay_ms / 1000.0

    def emit(self, event: str, payload: dict) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for fn in listeners:
            try:
                fn(event, payload)
            except Exception:
                log.exception("listener de notificação falhou (%s)", event)

    def emit_later(self, event: str, payload: dict, delay: float) -> None:
        if delay > 0:
            time.sleep(delay)
        self.emit(event, payload)


notifier = Notifier()
