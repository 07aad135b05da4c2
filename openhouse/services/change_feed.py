"""In-process realtime change notifications.

Services publish row changes after they commit; websocket clients subscribe
per table, optionally narrowed to rows where one column equals a value, and
reload their views when an event arrives.
"""

import asyncio
import enum
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime

import structlog

logger = structlog.get_logger(__name__)


class ChangeType(str, enum.Enum):
    """Kind of row change."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class RowFilter:
    """Equality filter on a single column (``column=eq.value``)."""

    column: str
    value: str

    @classmethod
    def parse(cls, expression: str | None) -> "RowFilter | None":
        """Parse ``column=eq.value`` (or ``column=value``) into a filter.

        Raises:
            ValueError: If the expression has no column or value
        """
        if not expression:
            return None

        column, sep, value = expression.partition("=")
        if value.startswith("eq."):
            value = value[3:]
        if not sep or not column or not value:
            raise ValueError(f"Invalid filter expression: {expression!r}")
        return cls(column=column.strip(), value=value.strip())

    def matches(self, record: dict) -> bool:
        """Check whether a serialized row satisfies the filter."""
        return str(record.get(self.column)) == self.value


@dataclass
class ChangeEvent:
    """A committed row change."""

    table: str
    event_type: ChangeType
    record: dict
    old_record: dict | None = None

    def to_dict(self) -> dict:
        """Serialize for transmission to subscribers."""
        return {
            "table": self.table,
            "eventType": self.event_type.value,
            "new": self.record if self.event_type != ChangeType.DELETE else {},
            "old": self.old_record or (self.record if self.event_type == ChangeType.DELETE else {}),
        }

    def restricted_to(self, columns: frozenset[str]) -> "ChangeEvent":
        """Copy of the event carrying only ``columns``."""
        return ChangeEvent(
            table=self.table,
            event_type=self.event_type,
            record={k: v for k, v in self.record.items() if k in columns},
            old_record=(
                {k: v for k, v in self.old_record.items() if k in columns}
                if self.old_record is not None
                else None
            ),
        )


@dataclass
class Subscription:
    """A subscriber's queue for one table/filter pair.

    ``columns`` limits which columns of each row reach the subscriber;
    None delivers every column.
    """

    table: str
    row_filter: RowFilter | None = None
    columns: frozenset[str] | None = None
    max_queue_size: int = 100
    subscription_id: uuid.UUID = field(default_factory=uuid.uuid4)
    dropped: int = 0

    def __post_init__(self):
        self.queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=self.max_queue_size)

    def offer(self, event: ChangeEvent) -> None:
        """Enqueue an event, discarding the oldest one when the queue is full."""
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(event)

    async def get(self, timeout: float | None = None) -> ChangeEvent:
        """Wait for the next event.

        Raises:
            asyncio.TimeoutError: If ``timeout`` elapses first
        """
        if timeout is None:
            return await self.queue.get()
        return await asyncio.wait_for(self.queue.get(), timeout)


def serialize_row(row) -> dict:
    """Convert an ORM row into a JSON-compatible dict of its columns."""
    record = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key, None)
        if isinstance(value, uuid.UUID):
            value = str(value)
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, enum.Enum):
            value = value.value
        record[column.name] = value
    return record


class ChangeFeed:
    """Publish/subscribe hub keyed by table name."""

    def __init__(self, max_queue_size: int = 100):
        """Initialize change feed.

        Args:
            max_queue_size: Buffered events per subscriber before the oldest is dropped
        """
        self.max_queue_size = max_queue_size
        self._subscriptions: dict[str, dict[uuid.UUID, Subscription]] = defaultdict(dict)

    def subscribe(
        self,
        table: str,
        row_filter: RowFilter | None = None,
        columns: frozenset[str] | None = None,
    ) -> Subscription:
        """Register a subscriber for changes to ``table``."""
        subscription = Subscription(
            table=table,
            row_filter=row_filter,
            columns=columns,
            max_queue_size=self.max_queue_size,
        )
        self._subscriptions[table][subscription.subscription_id] = subscription
        logger.debug(
            "change_feed_subscribed",
            table=table,
            subscription_id=str(subscription.subscription_id),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber. Unknown subscriptions are ignored."""
        table_subs = self._subscriptions.get(subscription.table)
        if table_subs is None:
            return
        table_subs.pop(subscription.subscription_id, None)
        if not table_subs:
            del self._subscriptions[subscription.table]

    def subscriber_count(self, table: str | None = None) -> int:
        """Number of live subscriptions, for one table or overall."""
        if table is not None:
            return len(self._subscriptions.get(table, {}))
        return sum(len(subs) for subs in self._subscriptions.values())

    def publish(
        self,
        table: str,
        event_type: ChangeType,
        record: dict,
        old_record: dict | None = None,
    ) -> int:
        """Deliver a change to every matching subscriber.

        Returns:
            Number of subscribers the event was delivered to
        """
        event = ChangeEvent(
            table=table, event_type=event_type, record=record, old_record=old_record
        )
        delivered = 0
        for subscription in list(self._subscriptions.get(table, {}).values()):
            if subscription.row_filter and not subscription.row_filter.matches(
                record or old_record or {}
            ):
                continue
            if subscription.columns is None:
                subscription.offer(event)
            else:
                subscription.offer(event.restricted_to(subscription.columns))
            delivered += 1
        return delivered

    def publish_row(self, row, event_type: ChangeType = ChangeType.INSERT) -> int:
        """Publish a change for an ORM row."""
        return self.publish(row.__tablename__, event_type, serialize_row(row))


# Global change feed instance
change_feed = ChangeFeed()
