"""Topic-based publish/subscribe and deferred handles for reference resolution."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from .errors import DeferredError

T = TypeVar("T")

_RESOLVE_PREFIX = "resolve:"


def resolve_topic(name: str) -> str:
    """Return the resolution topic for a top-level or dotted entity name."""
    return f"{_RESOLVE_PREFIX}{name}"


@dataclass
class Subscription:
    """Handle returned by :class:`EventBus` subscriptions."""

    topic: str
    callback: Callable[[Any], None]
    once: bool = False
    active: bool = field(default=True)

    def cancel(self) -> None:
        self.active = False


class EventBus:
    """Single-threaded topic bus.

    Delivery is synchronous on the publisher's call stack. Subscribers of a
    topic fire in subscription order; one-shot subscribers are dropped before
    any callback runs so a re-entrant publish cannot deliver to them twice.
    Publications are not replayed to later subscribers.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Subscription]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Callable[[Any], None]) -> Subscription:
        subscription = Subscription(topic=topic, callback=callback)
        self._subscribers[topic].append(subscription)
        return subscription

    def subscribe_once(self, topic: str, callback: Callable[[Any], None]) -> Subscription:
        subscription = Subscription(topic=topic, callback=callback, once=True)
        self._subscribers[topic].append(subscription)
        return subscription

    def publish(self, topic: str, value: Any) -> int:
        """Deliver ``value`` to the current subscribers of ``topic``.

        Returns the number of callbacks invoked.
        """
        current = [sub for sub in self._subscribers.get(topic, []) if sub.active]
        remaining = [sub for sub in current if not sub.once]
        if remaining:
            self._subscribers[topic] = remaining
        else:
            self._subscribers.pop(topic, None)

        delivered = 0
        for subscription in current:
            if not subscription.active:
                continue
            if subscription.once:
                subscription.active = False
            subscription.callback(value)
            delivered += 1
        return delivered

    def pending(self, topic: str | None = None) -> int:
        """Return the number of one-shot subscribers still waiting."""
        if topic is not None:
            return sum(1 for sub in self._subscribers.get(topic, []) if sub.once and sub.active)
        return sum(self.pending(name) for name in list(self._subscribers))

    def pending_topics(self) -> List[str]:
        return sorted(name for name in list(self._subscribers) if self.pending(name))


class Deferred(Generic[T]):
    """Result handle for work that completes on a later turn, if ever.

    Callbacks added before :meth:`resolve` run in registration order when the
    value arrives, synchronously on the resolving caller's stack. The "later
    turn" is simply the publish that delivers the value. Once resolved,
    :meth:`then` runs a new callback immediately, before it returns, rather
    than queueing it.
    """

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._done = False
        self._result: Optional[T] = None
        self._callbacks: List[Callable[[T], None]] = []

    @property
    def done(self) -> bool:
        return self._done

    @property
    def result(self) -> Optional[T]:
        return self._result

    def then(self, callback: Callable[[T], None]) -> "Deferred[T]":
        if self._done:
            callback(self._result)  # type: ignore[arg-type]
        else:
            self._callbacks.append(callback)
        return self

    def resolve(self, value: T) -> None:
        if self._done:
            raise DeferredError(f"Deferred {self.label or id(self)} already resolved")
        self._done = True
        self._result = value
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(value)

    def __repr__(self) -> str:
        state = "done" if self._done else "pending"
        return f"<Deferred {self.label!r} {state}>"


__all__ = ["Deferred", "EventBus", "Subscription", "resolve_topic"]
