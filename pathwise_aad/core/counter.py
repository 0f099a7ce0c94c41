# pathwise_aad/core/counter.py
from __future__ import annotations
import threading


class NodeIdCounter:
    """
    Monotonically increasing node id source.

    Ids are handed out in construction order and never reused, so every node
    gets an id strictly greater than the ids of its arguments. Graphs that
    are later combined must draw their ids from the same counter.
    """

    def __init__(self, start: int = 0):
        self._next = int(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            node_id = self._next
            self._next += 1
        return node_id

    def peek(self) -> int:
        """Next id to be handed out (not consumed)."""
        with self._lock:
            return self._next

    def __repr__(self):
        return f"NodeIdCounter(next={self.peek()})"


# Process-wide counter shared by every factory that is not given its own
global_counter = NodeIdCounter()
