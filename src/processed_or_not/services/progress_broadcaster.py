from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from processed_or_not.core.metrics import PROGRESS_SUBSCRIBERS
from processed_or_not.domain.models import ProgressEvent
from processed_or_not.domain.ports import ProgressStorePort

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscription:
    key: str
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue[dict[str, Any]] = field(default_factory=asyncio.Queue)

    def drain(self) -> list[dict[str, Any]]:
        """Leert die Queue und gibt die verworfenen Nachrichten zurück."""
        messages = []
        while not self.queue.empty():
            messages.append(self.queue.get_nowait())
        return messages


class ProgressBroadcaster:
    """
    Push-Kanal für Fortschrittsmeldungen.

    Hängt sich als Listener an den Progress Store und verteilt jedes Event an
    alle Subscriptions des betroffenen Keys (Fan-out). Polling und Push lesen
    damit dieselbe Quelle.
    """

    def __init__(self, store: ProgressStorePort) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        store.add_listener(self.publish)

    def subscribe(self, key: str) -> Subscription:
        subscription = Subscription(key=key, loop=asyncio.get_running_loop())
        self._subscriptions[key].append(subscription)
        PROGRESS_SUBSCRIBERS.inc()
        logger.debug("Progress subscriber added for '%s'", key)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.key)
        if not subscriptions or subscription not in subscriptions:
            return
        subscriptions.remove(subscription)
        if not subscriptions:
            del self._subscriptions[subscription.key]
        PROGRESS_SUBSCRIBERS.dec()
        logger.debug("Progress subscriber removed for '%s'", subscription.key)

    def subscriber_count(self, key: str) -> int:
        return len(self._subscriptions.get(key, ()))

    def publish(self, event: ProgressEvent) -> None:
        subscriptions = self._subscriptions.get(event.entry.key)
        if not subscriptions:
            return
        message = event.to_message()
        for subscription in list(subscriptions):
            self._deliver(subscription, message)

    @staticmethod
    def _deliver(subscription: Subscription, message: dict[str, Any]) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is subscription.loop:
            subscription.queue.put_nowait(message)
        elif not subscription.loop.is_closed():
            subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, message)
