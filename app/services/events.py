"""Domain events raised by the listing lifecycle.

The orchestrator commits its primary change first and only then publishes an
event. Every subscribed handler runs in isolation: a handler that raises is
logged, its partial work is rolled back, and the remaining handlers still run.
Nothing a handler does can undo the change that produced the event.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    listing_id: str


@dataclass(frozen=True)
class ParticipantJoined(DomainEvent):
    user_id: str
    author_id: str


@dataclass(frozen=True)
class ParticipantLeft(DomainEvent):
    user_id: str
    author_id: str


@dataclass(frozen=True)
class ListingStatusChanged(DomainEvent):
    author_id: str
    old_status: str
    new_status: str
    participant_ids: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ListingDeleted(DomainEvent):
    author_id: str
    title: str


Handler = Callable[[Session, DomainEvent], None]


def run_isolated(db: Session, label: str, func: Callable[..., object], *args, **kwargs) -> bool:
    """Call ``func`` and swallow its failure. Returns False when it raised."""
    try:
        func(*args, **kwargs)
    except Exception:  # noqa: BLE001
        db.rollback()
        logger.exception("side_effect_failed", extra={"side_effect": label})
        return False
    return True


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[Handler]:
        return list(self._handlers.get(event_type, []))

    def publish(self, db: Session, event: DomainEvent) -> list[str]:
        """Run every handler for ``event``; return the names of those that failed."""
        failed: list[str] = []
        for handler in self.handlers_for(type(event)):
            name = getattr(handler, "__name__", repr(handler))
            if not run_isolated(db, name, handler, db, event):
                failed.append(name)
        if failed:
            logger.warning(
                "domain_event_partially_handled",
                extra={"event": type(event).__name__, "listing_id": event.listing_id, "failed_handlers": failed},
            )
        return failed
