"""
Deletion History — Bounded undo buffer for deleted marks

Keeps the most recent N deletions (FIFO eviction). Undo pops the newest
entry; the registry decides whether it can be restored.
"""

import time
from collections import deque
from dataclasses import dataclass, replace
from typing import Deque, List, Optional

from .marks import Mark


@dataclass
class DeletedMark:
    """A deleted mark snapshot."""
    name: str
    mark: Mark
    deleted_at: float


class DeletionHistory:
    """Ring buffer of recent deletions. max_size 0 disables recording."""

    def __init__(self, max_size: int = 10):
        self.max_size = max(0, max_size)
        self._items: Deque[DeletedMark] = deque(maxlen=self.max_size or None)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def enabled(self) -> bool:
        return self.max_size > 0

    def record(self, mark: Mark) -> None:
        if not self.enabled:
            return
        self._items.append(DeletedMark(name=mark.name, mark=replace(mark), deleted_at=time.time()))

    def peek(self) -> Optional[DeletedMark]:
        return self._items[-1] if self._items else None

    def pop(self) -> Optional[DeletedMark]:
        return self._items.pop() if self._items else None

    def push_back(self, item: DeletedMark) -> None:
        """Return an entry that could not be restored."""
        if self.enabled:
            self._items.append(item)

    def entries(self) -> List[DeletedMark]:
        """Newest first."""
        return list(reversed(self._items))

    def clear(self) -> None:
        self._items.clear()
