"""
permledger.events: notification side channel.

Ledger operations publish :class:`~permledger.types.events.LedgerEvent` values to
an :class:`EventBus`. The bus stamps each event with a monotonically increasing
sequence number, appends it to a pluggable sink, then calls every subscribed
observer synchronously.

Sinks
-----
- InMemoryEventSink: keeps all records in RAM; used by tests and the CLI.
- JsonlEventSink: append-only JSON lines file.
- NullEventSink: drops everything.

Delivery is fire-and-forget: a sink or observer that raises is logged at
WARNING and skipped, and the ledger operation that emitted the event is not
affected. Observers may call back into the ledger; such calls pass through the
normal authorization, gate and reentrancy checks.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import (Any, Callable, Dict, Iterable, Iterator, List, Optional,
                    Protocol, runtime_checkable)

from .types.events import LedgerEvent

log = logging.getLogger(__name__)

Observer = Callable[["EventRecord"], None]


# =============================================================================
# Public data model
# =============================================================================


@dataclass(frozen=True)
class EventRecord:
    """An event together with its position in the emission order."""

    seq: int
    event: LedgerEvent

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def fields(self) -> Dict[str, Any]:
        return self.event.fields

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, **self.event.to_dict()}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EventRecord":
        return cls(seq=int(d["seq"]), event=LedgerEvent.from_dict(d))


def _record_matches(
    rec: EventRecord,
    name: Optional[str],
    account: Optional[bytes],
    since_seq: Optional[int],
) -> bool:
    if since_seq is not None and rec.seq < since_seq:
        return False
    if name is not None and rec.name != name:
        return False
    if account is not None and not rec.event.involves(account):
        return False
    return True


# =============================================================================
# Sink interface
# =============================================================================


@runtime_checkable
class EventSink(Protocol):
    def append(self, event: LedgerEvent, *, seq: int) -> EventRecord:
        """Store a single event at position `seq`. Returns the stored record."""

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        account: Optional[bytes] = None,
        since_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        """Iterate matching records in ascending `seq` order."""

    def flush(self) -> None:
        """Force persistence, if applicable."""

    def close(self) -> None:
        """Release resources."""


class InMemoryEventSink(EventSink):
    """Thread-safe list of records. Unbounded; intended for tests and short runs."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: List[EventRecord] = []

    def append(self, event: LedgerEvent, *, seq: int) -> EventRecord:
        rec = EventRecord(seq=seq, event=event)
        with self._lock:
            self._records.append(rec)
        return rec

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        account: Optional[bytes] = None,
        since_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[EventRecord]:
        with self._lock:
            out = [r for r in self._records if _record_matches(r, name, account, since_seq)]
        return out if limit is None else out[:limit]

    def names(self) -> List[str]:
        """Event names in emission order (handy in assertions)."""
        with self._lock:
            return [r.name for r in self._records]

    def last(self, name: Optional[str] = None) -> Optional[EventRecord]:
        logs = self.get_logs(name=name)
        return logs[-1] if logs else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def flush(self) -> None:
        return

    def close(self) -> None:
        with self._lock:
            self._records.clear()


class JsonlEventSink(EventSink):
    """
    Append-only JSON lines sink; one ``EventRecord.to_dict()`` object per line.

    The file handle is line-buffered; `flush()` also fsyncs.
    """

    def __init__(self, path: str) -> None:
        self._path = str(path)
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
        self._fh = open(self._path, "a+", encoding="utf-8", buffering=1)
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        return self._path

    def append(self, event: LedgerEvent, *, seq: int) -> EventRecord:
        rec = EventRecord(seq=seq, event=event)
        line = json.dumps(rec.to_dict(), separators=(",", ":"))
        with self._lock:
            self._fh.write(line + "\n")
        return rec

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        account: Optional[bytes] = None,
        since_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Iterator[EventRecord]:
        with self._lock:
            self._fh.flush()
            self._fh.seek(0)
            count = 0
            for line in self._fh:
                if not line.strip():
                    continue
                try:
                    rec = EventRecord.from_dict(json.loads(line))
                except (ValueError, KeyError, TypeError) as e:
                    log.warning("skipping malformed event line: %s (%r)", line[:120], e)
                    continue
                if _record_matches(rec, name, account, since_seq):
                    yield rec
                    count += 1
                    if limit is not None and count >= limit:
                        break

    def flush(self) -> None:
        with self._lock:
            self._fh.flush()
            os.fsync(self._fh.fileno())

    def close(self) -> None:
        with self._lock:
            if not self._fh.closed:
                self._fh.flush()
                self._fh.close()


class NullEventSink(EventSink):
    """A sink that drops everything."""

    def append(self, event: LedgerEvent, *, seq: int) -> EventRecord:
        return EventRecord(seq=seq, event=event)

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        account: Optional[bytes] = None,
        since_seq: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[EventRecord]:
        return []

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


# =============================================================================
# Bus
# =============================================================================


class EventBus:
    """
    Sequence, persist and fan out ledger events.

    Observers are called in subscription order, on the emitting thread, after
    the record has been appended to the sink.
    """

    def __init__(self, sink: Optional[EventSink] = None) -> None:
        self.sink: EventSink = sink if sink is not None else NullEventSink()
        self._observers: List[Observer] = []
        self._seq = 0
        self._lock = threading.RLock()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register `observer`; returns a callable that unsubscribes it."""
        with self._lock:
            self._observers.append(observer)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: Observer) -> None:
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                pass

    def emit(self, name: str, **fields: Any) -> EventRecord:
        event = LedgerEvent(name=name, fields=fields)
        with self._lock:
            seq = self._seq
            self._seq += 1
            observers = list(self._observers)

        try:
            rec = self.sink.append(event, seq=seq)
        except Exception:
            log.warning("event sink failed; event dropped", extra={"event": name, "seq": seq}, exc_info=True)
            rec = EventRecord(seq=seq, event=event)

        for obs in observers:
            try:
                obs(rec)
            except Exception:
                log.warning("event observer failed", extra={"event": name, "seq": seq}, exc_info=True)
        return rec


__all__ = [
    "EventRecord",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
    "EventBus",
    "Observer",
]
