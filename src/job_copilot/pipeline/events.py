from __future__ import annotations

import json
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Literal, Optional

logger = logging.getLogger(__name__)

EventType = Literal["status", "done", "error"]
TERMINAL_TYPES = ("done", "error")


@dataclass(frozen=True)
class ProgressEvent:
    type: EventType
    message: Optional[str] = None
    result: Optional[Dict[str, Any]] = None

    @property
    def terminal(self) -> bool:
        return self.type in TERMINAL_TYPES

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type}
        if self.message is not None:
            payload["message"] = self.message
        if self.result is not None:
            payload.update(self.result)
        return payload

    def to_sse(self) -> str:
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False)}\n\n"


class ProgressChannel:
    """
    Ordered, one-directional event stream for a single sync run.

    One producer (the pipeline, possibly from several worker threads)
    and one consumer. Exactly one terminal event closes the channel;
    anything emitted after it is dropped. detach() stops listening
    without touching the producer.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[ProgressEvent]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._listening = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def listening(self) -> bool:
        return self._listening

    def emit(self, event: ProgressEvent) -> bool:
        """Queue event; False if it was dropped."""
        # The lock keeps "terminal is last" true across worker threads.
        with self._lock:
            if self._closed:
                logger.debug("Dropping %s event after terminal event", event.type)
                return False
            if event.terminal:
                self._closed = True
            if not self._listening:
                return False
            self._queue.put(event)
            return True

    def status(self, message: str) -> bool:
        return self.emit(ProgressEvent("status", message=message))

    def done(self, result: Dict[str, Any]) -> bool:
        return self.emit(ProgressEvent("done", result=result))

    def error(self, message: str) -> bool:
        return self.emit(ProgressEvent("error", message=message))

    def detach(self) -> None:
        """Consumer went away: stop queueing, let in-flight work finish."""
        with self._lock:
            self._listening = False
        # Drain so nothing keeps the queued results alive.
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            event = self._queue.get()
            yield event
            if event.terminal:
                return

    def collect(self) -> List[ProgressEvent]:
        """Everything queued so far; the producer must have finished."""
        events: List[ProgressEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events
