"""
In-process change feed.

Writers publish a `Change` for a case after their transaction commits;
subscribers (one per open WebSocket) receive every change for the case they
subscribed to. Callbacks run on the publishing thread and must not block;
the WebSocket endpoint hands them over to its event loop.
"""

from mediator.mediation.records import Change
from collections import defaultdict
from typing import Callable, Dict, List
from uuid import UUID
import threading
import logging

logger = logging.getLogger(__name__)

Subscriber = Callable[[Change], None]


class ChangeFeed:

    def __init__(self):
        self._subscribers: Dict[UUID, List[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, case_id, callback: Subscriber) -> Callable[[], None]:
        """
        Register `callback` for changes of `case_id`.

        Returns
        -------
        callable
            Call it to unsubscribe. Calling it twice is harmless.
        """
        case_id = UUID(str(case_id))
        with self._lock:
            self._subscribers[case_id].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(case_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(case_id, None)

        return unsubscribe

    def publish(self, change: Change) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(change.case_id, []))
        for callback in callbacks:
            try:
                callback(change)
            except Exception as e:
                logger.error(f"Change subscriber failed for case {change.case_id}: {e}", exc_info=True)

    def subscriber_count(self, case_id) -> int:
        with self._lock:
            return len(self._subscribers.get(UUID(str(case_id)), []))
