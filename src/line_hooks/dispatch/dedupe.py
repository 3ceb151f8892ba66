"""Redelivery policies: decide whether a redelivered event is processed again."""

from __future__ import annotations

from collections import OrderedDict
from typing import Protocol

from line_hooks.messenger.models import InboundEvent


class RedeliveryPolicy(Protocol):
    """Consulted once for every event in a delivery, redelivered or not."""

    def should_process(self, event: InboundEvent) -> bool:
        ...


class ProcessAllPolicy:
    """Process every event, redelivered or not. Duplicate replies are possible."""

    def should_process(self, event: InboundEvent) -> bool:
        return True


class InMemoryDedupePolicy:
    """Skip events whose ``webhook_event_id`` was already accepted.

    Ids are kept in a bounded LRU, so this only protects a single process and
    only for the most recent *max_entries* events. Events without an id are
    always processed.
    """

    def __init__(self, max_entries: int = 10000):
        self._max_entries = max_entries
        self._seen: OrderedDict[str, None] = OrderedDict()

    def should_process(self, event: InboundEvent) -> bool:
        event_id = event.webhook_event_id
        if not event_id:
            return True
        if event_id in self._seen:
            self._seen.move_to_end(event_id)
            return False
        self._seen[event_id] = None
        if len(self._seen) > self._max_entries:
            self._seen.popitem(last=False)
        return True
