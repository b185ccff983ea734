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
Lifecycle events emitted by the container.

Every state transition (registration, injection, creation, lifecycle hooks,
context start/stop) is reported as one of these immutable events. Each event
renders itself as a single human readable line and carries the level it
should be logged at.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Dict, Optional


class EventLevel(IntEnum):
    """Event severity, ordered."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    OFF = 4


def _timestamp(value: datetime) -> str:
    return value.strftime("%H:%M:%S.%f")[:-3]


def _ms(seconds: float) -> str:
    return f"{seconds * 1000:.3f}ms"


@dataclass(frozen=True, kw_only=True)
class Event:
    """Base class of all container events."""

    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def level(self) -> EventLevel:
        return EventLevel.INFO

    def describe(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return f"[{_timestamp(self.timestamp)}] {self.describe()}"


@dataclass(frozen=True)
class ContainerCreated(Event):

    def describe(self) -> str:
        return "Container created"


@dataclass(frozen=True)
class ComponentRegistered(Event):
    component_id: str
    component_type: str
    scope: str

    def describe(self) -> str:
        return (
            f"Component registered: {self.component_id} "
            f"(type: {self.component_type}, scope: {self.scope})"
        )


@dataclass(frozen=True)
class ComponentScanned(Event):
    component_type: str
    module: str
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def level(self) -> EventLevel:
        return EventLevel.DEBUG

    def describe(self) -> str:
        return f"Component scanned: {self.component_type} in module {self.module} (tags: {self.tags})"


@dataclass(frozen=True)
class DependencyInjected(Event):
    target_type: str
    dependency_type: str
    field_name: str
    by_name: bool = False

    @property
    def level(self) -> EventLevel:
        return EventLevel.DEBUG

    def describe(self) -> str:
        mode = "by name" if self.by_name else "by type"
        return (
            f"Dependency injected: {self.target_type}.{self.field_name} "
            f"<- {self.dependency_type} ({mode})"
        )


@dataclass(frozen=True)
class DependencyInjectionFailed(Event):
    target_type: str
    dependency_type: str
    field_name: str
    error: str

    @property
    def level(self) -> EventLevel:
        return EventLevel.ERROR

    def describe(self) -> str:
        return (
            f"Dependency injection failed: {self.target_type}.{self.field_name} "
            f"<- {self.dependency_type} (error: {self.error})"
        )


@dataclass(frozen=True)
class ComponentCreated(Event):
    component_id: str
    component_type: str
    creation_time: float

    def describe(self) -> str:
        return (
            f"Component created: {self.component_id} "
            f"(type: {self.component_type}, time: {_ms(self.creation_time)})"
        )


@dataclass(frozen=True)
class ComponentDestroyed(Event):
    component_id: str
    component_type: str

    def describe(self) -> str:
        return f"Component destroyed: {self.component_id} (type: {self.component_type})"


@dataclass(frozen=True)
class LifecycleStarting(Event):
    component_id: str
    component_type: str
    method_name: str

    @property
    def level(self) -> EventLevel:
        return EventLevel.DEBUG

    def describe(self) -> str:
        return (
            f"Lifecycle starting: {self.component_id}.{self.method_name} "
            f"(type: {self.component_type})"
        )


@dataclass(frozen=True)
class LifecycleStarted(Event):
    component_id: str
    component_type: str
    method_name: str
    duration: float
    error: Optional[str] = None

    @property
    def level(self) -> EventLevel:
        return EventLevel.ERROR if self.error else EventLevel.INFO

    def describe(self) -> str:
        if self.error:
            return (
                f"Lifecycle started with error: {self.component_id}.{self.method_name} "
                f"(type: {self.component_type}, duration: {_ms(self.duration)}, error: {self.error})"
            )
        return (
            f"Lifecycle started: {self.component_id}.{self.method_name} "
            f"(type: {self.component_type}, duration: {_ms(self.duration)})"
        )


@dataclass(frozen=True)
class LifecycleStopping(Event):
    component_id: str
    component_type: str
    method_name: str

    @property
    def level(self) -> EventLevel:
        return EventLevel.DEBUG

    def describe(self) -> str:
        return (
            f"Lifecycle stopping: {self.component_id}.{self.method_name} "
            f"(type: {self.component_type})"
        )


@dataclass(frozen=True)
class LifecycleStopped(Event):
    component_id: str
    component_type: str
    method_name: str
    duration: float
    error: Optional[str] = None

    @property
    def level(self) -> EventLevel:
        return EventLevel.ERROR if self.error else EventLevel.INFO

    def describe(self) -> str:
        if self.error:
            return (
                f"Lifecycle stopped with error: {self.component_id}.{self.method_name} "
                f"(type: {self.component_type}, duration: {_ms(self.duration)}, error: {self.error})"
            )
        return (
            f"Lifecycle stopped: {self.component_id}.{self.method_name} "
            f"(type: {self.component_type}, duration: {_ms(self.duration)})"
        )


@dataclass(frozen=True)
class ContextStarting(Event):

    def describe(self) -> str:
        return "Application context starting"


@dataclass(frozen=True)
class ContextStarted(Event):
    duration: float
    component_count: int

    def describe(self) -> str:
        return (
            f"Application context started "
            f"(duration: {_ms(self.duration)}, components: {self.component_count})"
        )


@dataclass(frozen=True)
class ContextStopping(Event):

    def describe(self) -> str:
        return "Application context stopping"


@dataclass(frozen=True)
class ContextStopped(Event):
    duration: float
    error_count: int = 0

    @property
    def level(self) -> EventLevel:
        return EventLevel.WARNING if self.error_count else EventLevel.INFO

    def describe(self) -> str:
        if self.error_count:
            return (
                f"Application context stopped with {self.error_count} error(s) "
                f"(duration: {_ms(self.duration)})"
            )
        return f"Application context stopped (duration: {_ms(self.duration)})"


@dataclass(frozen=True)
class ScanStarting(Event):
    component_type: str
    module: str

    @property
    def level(self) -> EventLevel:
        return EventLevel.DEBUG

    def describe(self) -> str:
        return f"Component scan starting: {self.component_type} in module {self.module}"


@dataclass(frozen=True)
class ScanCompleted(Event):
    component_type: str
    module: str
    duration: float
    component_name: Optional[str] = None
    scope: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def level(self) -> EventLevel:
        return EventLevel.DEBUG if self.success else EventLevel.ERROR

    def describe(self) -> str:
        if not self.success:
            return (
                f"Component scan failed: {self.component_type} in module {self.module} "
                f"(duration: {_ms(self.duration)}, error: {self.error})"
            )
        return (
            f"Component scan completed: {self.component_name} ({self.component_type}) "
            f"in module {self.module} (scope: {self.scope}, duration: {_ms(self.duration)})"
        )
