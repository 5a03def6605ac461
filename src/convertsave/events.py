"""Progress events delivered to the UI shell.

Provisioning publishes ``download-progress`` events of the single shape
``{status, message}``. Each subscriber owns one asyncio.Queue, so events of
one task arrive in the order they were published.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DOWNLOAD_PROGRESS = "download-progress"


class ProgressStatus(Enum):
    """Stage of a provisioning task."""

    CHECKING = "checking"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    INSTALLING = "installing"
    UPGRADING = "upgrading"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProgressStatus.COMPLETE, ProgressStatus.ERROR)


@dataclass(frozen=True)
class DownloadProgress:
    """Payload of a download-progress event."""

    status: ProgressStatus
    message: str

    def to_dict(self) -> dict[str, str]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


class ProgressEmitter(Protocol):
    """Callable that receives progress updates from a provisioning task."""

    def __call__(self, status: ProgressStatus, message: str) -> None: ...


def null_emitter(status: ProgressStatus, message: str) -> None:
    """Emitter that only logs, for callers without a UI."""
    logger.debug("Progress %s: %s", status.value, message)


class Subscription:
    """A subscriber's view of one channel.

    Use as an async iterator, or call get() directly. close() detaches the
    subscription from the bus.
    """

    def __init__(self, bus: EventBus, channel: str) -> None:
        self.channel = channel
        self._bus = bus
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def _put(self, payload: dict[str, Any]) -> None:
        self._queue.put_nowait(payload)

    async def get(self) -> dict[str, Any]:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._bus.unsubscribe(self)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> dict[str, Any]:
        return await self._queue.get()


class EventBus:
    """In-process publish/subscribe for named channels."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscription]] = {}

    def subscribe(self, channel: str) -> Subscription:
        subscription = Subscription(self, channel)
        self._subscribers.setdefault(channel, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.channel, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, []))

    def publish(self, channel: str, payload: dict[str, Any]) -> None:
        """Deliver a payload to every current subscriber of a channel."""
        for subscription in list(self._subscribers.get(channel, [])):
            subscription._put(payload)

    def download_emitter(self) -> ProgressEmitter:
        """Return an emitter that publishes on the download-progress channel."""

        def emit(status: ProgressStatus, message: str) -> None:
            logger.info("%s: %s", status.value, message)
            self.publish(
                DOWNLOAD_PROGRESS, DownloadProgress(status, message).to_dict()
            )

        return emit
