"""In-process channel for job status and detection progress events."""

import logging
from typing import Any, Callable, List

from .models import ProgressEvent, StatusEvent

logger = logging.getLogger(__name__)

StatusListener = Callable[[StatusEvent], None]
ProgressListener = Callable[[ProgressEvent], None]


class StatusChannel:
    """
    Delivers events to every subscriber, synchronously and in subscription
    order. Status and progress events have separate subscriber lists, so
    progress never shows up in a job's status sequence.

    A listener that raises is logged and skipped; it never stops delivery to
    the others or the job that published the event.
    """

    def __init__(self) -> None:
        self._listeners: List[StatusListener] = []
        self._progress_listeners: List[ProgressListener] = []

    def subscribe(self, listener: StatusListener) -> StatusListener:
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: StatusListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug(f"Listener was not subscribed: {listener!r}")

    def subscribe_progress(self, listener: ProgressListener) -> ProgressListener:
        self._progress_listeners.append(listener)
        return listener

    def publish(self, event: StatusEvent) -> None:
        self._deliver(self._listeners, event)

    def publish_progress(self, event: ProgressEvent) -> None:
        self._deliver(self._progress_listeners, event)

    def _deliver(self, listeners: List[Callable[[Any], None]], event: Any) -> None:
        for listener in list(listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Listener {listener!r} failed on {event}: {e}", exc_info=True)
