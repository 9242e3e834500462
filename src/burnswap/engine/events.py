"""Events emitted by the engine.

Events are appended to the ledger event log inside the transaction that
produced them, so a failed call never leaves an event behind.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import ClassVar, Optional, Union

from burnswap.ledger.models import EventKind, EventRecord


@dataclass(frozen=True)
class ExchangePerformed:
    """Source asset burned and target asset paid to requester."""

    source_amount: int
    target_amount: int
    requester: str
    kind: ClassVar[EventKind] = EventKind.EXCHANGE


@dataclass(frozen=True)
class RatioChanged:
    new_ratio: int
    kind: ClassVar[EventKind] = EventKind.RATIO_CHANGED


@dataclass(frozen=True)
class DeadlineChanged:
    new_deadline: int
    kind: ClassVar[EventKind] = EventKind.DEADLINE_CHANGED


@dataclass(frozen=True)
class WithdrawalPerformed:
    asset: str
    amount: int
    kind: ClassVar[EventKind] = EventKind.WITHDRAWAL


@dataclass(frozen=True)
class AdministratorChanged:
    previous_administrator: str
    new_administrator: str
    kind: ClassVar[EventKind] = EventKind.ADMINISTRATOR_CHANGED


EngineEvent = Union[
    ExchangePerformed,
    RatioChanged,
    DeadlineChanged,
    WithdrawalPerformed,
    AdministratorChanged,
]

EVENT_TYPES: dict[EventKind, type] = {
    EventKind.EXCHANGE: ExchangePerformed,
    EventKind.RATIO_CHANGED: RatioChanged,
    EventKind.DEADLINE_CHANGED: DeadlineChanged,
    EventKind.WITHDRAWAL: WithdrawalPerformed,
    EventKind.ADMINISTRATOR_CHANGED: AdministratorChanged,
}


@dataclass(frozen=True)
class LoggedEvent:
    """Event read back from the log with its position."""

    id: int
    event: EngineEvent
    requester: Optional[str]
    created_at: Optional[datetime]

    @property
    def kind(self) -> EventKind:
        return self.event.kind


def event_payload(event: EngineEvent) -> dict:
    """Serializable payload of an event."""
    return asdict(event)


def event_from_record(record: EventRecord) -> LoggedEvent:
    """Rebuild an event from its log row."""
    event_cls = EVENT_TYPES[EventKind(record.kind)]
    return LoggedEvent(
        id=record.id,
        event=event_cls(**json.loads(record.payload)),
        requester=record.requester,
        created_at=record.created_at,
    )
