import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

ChangeCallback = Callable[["ChangeEvent"], None]


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    entity_id: int
    owner_id: Optional[int]
    op: str  # insert | update | delete


@dataclass
class _Subscription:
    callback: ChangeCallback
    table: Optional[str]
    owner_id: Optional[int]

    def matches(self, event: ChangeEvent) -> bool:
        if self.table is not None and self.table != event.table:
            return False
        if self.owner_id is not None and self.owner_id != event.owner_id:
            return False
        return True


class ChangeFeed:
    """
    Subscribe-to-changes-by-filter. The store publishes one event per committed
    row change; events for different entities carry no ordering guarantee.
    """

    def __init__(self):
        self._subscriptions: List[_Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: ChangeCallback, table: Optional[str] = None, owner_id: Optional[int] = None) -> Callable[[], None]:
        sub = _Subscription(callback=callback, table=table, owner_id=owner_id)
        with self._lock:
            self._subscriptions.append(sub)

        def unsubscribe():
            with self._lock:
                if sub in self._subscriptions:
                    self._subscriptions.remove(sub)
        return unsubscribe

    def publish(self, event: ChangeEvent):
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]
        for sub in targets:
            try:
                sub.callback(event)
            except Exception:
                # The write is already committed; subscriber errors are only logged
                logger.exception(f"Change subscriber failed for {event.table}:{event.entity_id}")
