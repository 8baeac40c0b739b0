"""
Domain events for notification and reporting consumers.

Signals are published only after the owning transaction commits; a failing
receiver is logged and never affects the swipe that caused it.
"""
import logging
from typing import List, Tuple

from blinker import Namespace

logger = logging.getLogger(__name__)

engine_signals = Namespace()

match_created = engine_signals.signal('match_created')
match_unmatched = engine_signals.signal('match_unmatched')
swipe_undone = engine_signals.signal('swipe_undone')


class EventBuffer:
    """Collects events during a unit of work and publishes them on flush."""

    def __init__(self):
        self._pending: List[Tuple[object, dict]] = []

    def add(self, signal, **payload):
        self._pending.append((signal, payload))

    def clear(self):
        self._pending.clear()

    def flush(self, sender=None):
        pending, self._pending = self._pending, []
        for signal, payload in pending:
            try:
                signal.send(sender, **payload)
            except Exception as e:
                logger.error(f"Receiver for '{signal.name}' failed with {payload}: {str(e)}")
