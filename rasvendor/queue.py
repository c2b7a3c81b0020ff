"""First-in first-out queue of timestamped counter values."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator


@dataclass
class QueueNode:
    """One queued sample: a point in time and the value seen then."""

    time: int
    value: int


class LinkQueue:
    """A FIFO queue of :class:`QueueNode` entries."""

    def __init__(self, nodes: Iterable[QueueNode] = ()) -> None:
        self._nodes: deque[QueueNode] = deque(nodes)

    def push(self, node: QueueNode) -> None:
        """Append a node at the tail."""
        self._nodes.append(node)

    def pop(self) -> QueueNode:
        """Remove and return the node at the head."""
        if not self._nodes:
            raise IndexError("pop from an empty queue")
        return self._nodes.popleft()

    def front(self) -> QueueNode | None:
        """Return the node at the head without removing it, or None."""
        return self._nodes[0] if self._nodes else None

    def clear(self) -> None:
        """Drop every node."""
        self._nodes.clear()

    def is_empty(self) -> bool:
        return not self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[QueueNode]:
        return iter(self._nodes)