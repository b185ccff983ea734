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
In-process component container with attribute injection and ordered lifecycle.

Features:
- Named singleton and prototype beans
- Attribute injection by name, by type and by interface
- Deterministic init/destroy ordering with first-failure semantics
- Lifecycle event stream to pluggable sinks
"""

from beanpod.config import (
    ContextConfig,
    InjectionConfig,
    LifecycleConfig,
    LoggingConfig,
    LogLevel,
    SinkKind,
    ValidationConfig,
    load_config,
)
from beanpod.context import ApplicationContext
from beanpod.descriptors import (
    Binding,
    ComponentDescriptor,
    FieldSpec,
    Scope,
    component,
    controller,
    describe,
    inject,
    repository,
    service,
)
from beanpod.events import Event, EventLevel
from beanpod.exceptions import (
    BeanCreationError,
    BeanpodError,
    CircularDependencyError,
    ConfigurationError,
    ContextStateError,
    DuplicateNameError,
    LifecycleHookError,
    TypeMismatchError,
    UnresolvedDependencyError,
    WiringError,
)
from beanpod.graph import DependencyGraphValidator, ValidationIssue, ValidationResult
from beanpod.injector import Injector
from beanpod.lifecycle import LifecycleEngine
from beanpod.registry import BeanPhase, BeanRecord, BeanRegistry
from beanpod.scanner import ComponentScanner, ScannedComponent
from beanpod.sinks import (
    ConsoleEventSink,
    EventSink,
    FilteredEventSink,
    LeveledEventSink,
    LoggerEventSink,
    MultiEventSink,
    NopEventSink,
    RecordingEventSink,
)


__all__ = [
    # Context
    "ApplicationContext",
    # Declarations
    "component",
    "service",
    "repository",
    "controller",
    "inject",
    "describe",
    "Scope",
    "Binding",
    "ComponentDescriptor",
    "FieldSpec",
    # Core
    "BeanRegistry",
    "BeanRecord",
    "BeanPhase",
    "Injector",
    "LifecycleEngine",
    "ComponentScanner",
    "ScannedComponent",
    "DependencyGraphValidator",
    "ValidationIssue",
    "ValidationResult",
    # Configuration
    "ContextConfig",
    "InjectionConfig",
    "LifecycleConfig",
    "LoggingConfig",
    "LogLevel",
    "SinkKind",
    "ValidationConfig",
    "load_config",
    # Events
    "Event",
    "EventLevel",
    "EventSink",
    "ConsoleEventSink",
    "FilteredEventSink",
    "LeveledEventSink",
    "LoggerEventSink",
    "MultiEventSink",
    "NopEventSink",
    "RecordingEventSink",
    # Exceptions
    "BeanpodError",
    "BeanCreationError",
    "CircularDependencyError",
    "ConfigurationError",
    "ContextStateError",
    "DuplicateNameError",
    "LifecycleHookError",
    "TypeMismatchError",
    "UnresolvedDependencyError",
    "WiringError",
]
