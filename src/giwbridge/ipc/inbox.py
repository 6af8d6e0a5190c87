"""
Holding area for decoded messages that no caller has consumed yet.
"""

from typing import Dict, List, Optional

from giwbridge.ipc.protocol import MessageKind, UiMessage
from giwbridge.utils.logging import get_logger, log_trace

log = get_logger('ipc.inbox')


class Inbox:
    """
    At most one pending message per MessageKind.

    Filing a message whose kind is already pending replaces the older one.
    Callers that must see every push of a kind have to drain it every tick.
    """

    def __init__(self):
        self._pending: Dict[MessageKind, UiMessage] = {}

    def file(self, message: UiMessage) -> None:
        """Store a decoded message, overwriting any pending one of its kind."""
        kind = message.kind
        if kind in self._pending:
            log.debug(f"Dropping unconsumed {kind.name} in favor of a newer one")
        self._pending[kind] = message
        log_trace(log, f"Filed {kind.name}")

    def try_take(self, kind: MessageKind) -> Optional[UiMessage]:
        """Remove and return the pending message of ``kind``, if any."""
        return self._pending.pop(kind, None)

    def pending_kinds(self) -> List[MessageKind]:
        return list(self._pending)

    def clear(self) -> None:
        self._pending.clear()

    def __contains__(self, kind: MessageKind) -> bool:
        return kind in self._pending

    def __len__(self) -> int:
        return len(self._pending)
