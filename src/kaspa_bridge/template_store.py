"""
Single-slot holder for the latest block template.

The refresh loop writes and the reporter reads. Both go through one lock
that is held only while the reference is swapped in or copied out.
"""

import threading
from datetime import UTC, datetime

from .models import BlockTemplate


class TemplateStore:
    """
    Concurrency-safe holder of the current block template.

    ``get`` returns ``None`` until the first ``set``. Only the most recent
    template is kept; earlier ones are dropped without being read.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._template: BlockTemplate | None = None
        self._updated_at: datetime | None = None
        self._updates = 0

    def set(self, template: BlockTemplate) -> None:
        """
        Replace the current template.

        Args:
            template: The newly fetched template
        """
        now = datetime.now(UTC)
        with self._lock:
            self._template = template
            self._updated_at = now
            self._updates += 1

    def get(self) -> BlockTemplate | None:
        """
        Get the most recently stored template.

        Returns:
            The latest template, or None if nothing has been stored yet
        """
        with self._lock:
            return self._template

    def snapshot(self) -> tuple[BlockTemplate | None, datetime | None]:
        """
        Get the latest template together with the time it was stored.

        Both values come from the same critical section.
        """
        with self._lock:
            return self._template, self._updated_at

    @property
    def updates(self) -> int:
        """Number of times ``set`` has been called."""
        with self._lock:
            return self._updates
