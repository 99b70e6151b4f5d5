"""Change notifications for the record store.

Writers publish a :class:`Change` after each committed write. Observers
subscribe to one or more collections, optionally narrowed by a predicate,
and are called for every matching change. :class:`LiveQuery` builds on this
to keep the result of a read up to date: it re-runs its fetch whenever a
relevant collection changes and tells its own listeners about the new value.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

COLLECTIONS = ("client", "session", "exercise", "weightlog", "program")


@dataclass(frozen=True)
class Change:
    collection: str
    operation: str  # insert, update or delete
    record_id: int
    client_id: Optional[int] = None


Observer = Callable[[Change], Union[None, Awaitable[None]]]
Predicate = Callable[[Change], bool]


class Subscription:
    def __init__(
        self,
        feed: "ChangeFeed",
        collections: frozenset,
        callback: Observer,
        where: Optional[Predicate] = None,
    ) -> None:
        self.feed = feed
        self.collections = collections
        self.callback = callback
        self.where = where
        self.active = True

    def matches(self, change: Change) -> bool:
        if change.collection not in self.collections:
            return False
        return self.where is None or self.where(change)

    def close(self) -> None:
        if self.active:
            self.feed._remove(self)
            self.active = False


class ChangeFeed:
    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []

    def subscribe(
        self,
        collections: Union[str, Iterable[str]],
        callback: Observer,
        where: Optional[Predicate] = None,
    ) -> Subscription:
        if isinstance(collections, str):
            collections = [collections]
        names = frozenset(collections)
        unknown = names.difference(COLLECTIONS)
        if unknown:
            raise ValueError(f"Unknown collection(s): {', '.join(sorted(unknown))}")
        sub = Subscription(self, names, callback, where)
        self._subscriptions.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, change: Change) -> None:
        # Snapshot so observers can unsubscribe while being notified
        for sub in list(self._subscriptions):
            if not sub.active or not sub.matches(change):
                continue
            try:
                result = sub.callback(change)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Observer failed for %s %s #%s", change.operation, change.collection, change.record_id
                )


feed = ChangeFeed()


class LiveQuery(Generic[T]):
    """Keep the result of ``fetch`` current as the store changes."""

    def __init__(
        self,
        feed: ChangeFeed,
        collections: Union[str, Iterable[str]],
        fetch: Callable[[], Awaitable[T]],
        where: Optional[Predicate] = None,
    ) -> None:
        self.fetch = fetch
        self.value: Optional[T] = None
        self.loaded = False
        self._listeners: List[Callable[[T], Any]] = []
        self._subscription = feed.subscribe(collections, self._on_change, where)

    def on_update(self, listener: Callable[[T], Any]) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def refresh(self) -> T:
        self.value = await self.fetch()
        self.loaded = True
        for listener in list(self._listeners):
            result = listener(self.value)
            if inspect.isawaitable(result):
                await result
        return self.value

    async def _on_change(self, change: Change) -> None:
        logger.debug("Live query refresh after %s on %s", change.operation, change.collection)
        await self.refresh()

    def close(self) -> None:
        self._subscription.close()
        self._listeners.clear()

    @property
    def closed(self) -> bool:
        return not self._subscription.active
