import uuid
from datetime import datetime, timezone
from typing import Callable, List

from loguru import logger
from pydantic import BaseModel, Field


class MatchEvent(BaseModel):
    """Diagnostic record for one matcher invocation."""
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    matcher_type: str
    matcher_index: int
    tasks: int
    matched_tasks: int
    matched_containers: int
    failed: bool = False


class EventBus:
    """A lightweight, synchronous bus for filter diagnostics."""

    def __init__(self):
        self._subscribers: List[Callable[[MatchEvent], None]] = []

    def subscribe(self, callback: Callable[[MatchEvent], None]) -> None:
        """Register a callback to be executed when an event is emitted."""
        self._subscribers.append(callback)

    def emit(self, event: MatchEvent) -> None:
        """Broadcast ``event`` to all subscribers."""
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                # Diagnostics never change a filter result.
                logger.warning(f"[BUS] Subscriber failed on {event.matcher_type}[{event.matcher_index}]: {e}")
