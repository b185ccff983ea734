# -------------------------------------------------------------------------------------------------
#  Copyright (C) 2015-2025 Nautech Systems Pty Ltd. All rights reserved.
#  https://nautechsystems.io
#
#  Licensed under the GNU Lesser General Public License Version 3.0 (the "License");
#  You may not use this file except in compliance with the License.
#  You may obtain a copy of the License at https://www.gnu.org/licenses/lgpl-3.0.en.html
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
# -------------------------------------------------------------------------------------------------
"""
Event sinks receiving container lifecycle events.
"""

import sys
import threading
from typing import Callable, List, Optional, Protocol, TextIO, Type, TypeVar, runtime_checkable

from nautilus_trader.common.component import Logger

from beanpod.events import Event, EventLevel


E = TypeVar("E", bound=Event)

_emit_logger = Logger("EventSink")


@runtime_checkable
class EventSink(Protocol):
    """Receives container events. Implementations must not rely on being able to fail."""

    def log_event(self, event: Event) -> None:
        ...


def emit(sink: Optional[EventSink], event: Event) -> None:
    """
    Deliver an event to a sink.

    Sink failures are logged and never propagate into the container operation
    being reported on.
    """
    if sink is None:
        return
    try:
        sink.log_event(event)
    except Exception as e:
        _emit_logger.warning(
            f"Event sink {type(sink).__name__} failed on {type(event).__name__}: {e!r}"
        )


class NopEventSink:
    """Sink that ignores all events."""

    def log_event(self, event: Event) -> None:
        pass


NOP_SINK = NopEventSink()


class LoggerEventSink:
    """
    Sink forwarding events to a component logger at the event's level.

    This is the default sink of an application context.
    """

    def __init__(self, name: str = "ApplicationContext") -> None:
        self._logger = Logger(name)

    def log_event(self, event: Event) -> None:
        message = event.describe()
        level = event.level
        if level >= EventLevel.OFF:
            return
        if level >= EventLevel.ERROR:
            self._logger.error(message)
        elif level >= EventLevel.WARNING:
            self._logger.warning(message)
        elif level >= EventLevel.INFO:
            self._logger.info(message)
        else:
            self._logger.debug(message)


class ConsoleEventSink:
    """
    Sink writing one human readable line per event.

    Parameters
    ----------
    stream : TextIO, optional
        Target stream, standard error if not provided
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def log_event(self, event: Event) -> None:
        stream = self._stream or sys.stderr
        with self._lock:
            stream.write(f"{event}\n")


class RecordingEventSink:
    """Sink keeping every event in memory, in arrival order."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def log_event(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def events_of_type(self, event_type: Type[E]) -> List[E]:
        return [event for event in self.events if isinstance(event, event_type)]

    def messages(self) -> List[str]:
        return [event.describe() for event in self.events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class MultiEventSink:
    """Sink fanning events out to several sinks."""

    def __init__(self, *sinks: EventSink) -> None:
        self._sinks: List[EventSink] = list(sinks)

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def log_event(self, event: Event) -> None:
        # One failing sink must not starve the others
        for sink in self._sinks:
            emit(sink, event)


class FilteredEventSink:
    """Sink delivering only events accepted by a predicate."""

    def __init__(self, sink: EventSink, predicate: Callable[[Event], bool]) -> None:
        self._sink = sink
        self._predicate = predicate

    def log_event(self, event: Event) -> None:
        if self._predicate(event):
            self._sink.log_event(event)


class LeveledEventSink:
    """Sink delivering only events at or above a minimum level."""

    def __init__(self, sink: EventSink, level: EventLevel = EventLevel.INFO) -> None:
        self._sink = sink
        self.level = level

    def log_event(self, event: Event) -> None:
        if self.level < EventLevel.OFF and event.level >= self.level:
            self._sink.log_event(event)


def create_sink(kind: str = "logger", level: EventLevel = EventLevel.DEBUG) -> EventSink:
    """
    Create a sink from configuration values.

    Parameters
    ----------
    kind : str
        'logger', 'console' or 'none'
    level : EventLevel
        Minimum level delivered

    Returns
    -------
    EventSink
    """
    if kind == "none" or level >= EventLevel.OFF:
        return NOP_SINK
    if kind == "logger":
        sink: EventSink = LoggerEventSink()
    elif kind == "console":
        sink = ConsoleEventSink()
    else:
        raise ValueError(f"Unknown event sink: {kind}")

    if level > EventLevel.DEBUG:
        return LeveledEventSink(sink, level)
    return sink
