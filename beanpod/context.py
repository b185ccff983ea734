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
Application context: the facade composing registry, injector and lifecycle
engine into start/stop/refresh operations.
"""

import threading
import time
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from nautilus_trader.common.component import Logger

from beanpod.config import ContextConfig
from beanpod.descriptors import Scope, describe
from beanpod.events import ContextStarted, ContextStarting, ContextStopped, ContextStopping
from beanpod.exceptions import ConfigurationError, ContextStateError, LifecycleHookError
from beanpod.graph import DependencyGraphValidator, ValidationResult
from beanpod.injector import Injector
from beanpod.lifecycle import LifecycleEngine
from beanpod.registry import BeanPhase, BeanRecord, BeanRegistry
from beanpod.scanner import ComponentScanner
from beanpod.sinks import EventSink, create_sink, emit


T = TypeVar("T")


class ApplicationContext:
    """
    Application context owning one registry, injector and lifecycle engine.

    The context provides:
    - Bean registration by name, by component declaration and by interface
    - Retrieval by name and by type
    - Ordered start (wire everything, then initialize in registration order)
    - Best-effort stop (destroy in reverse registration order)
    - Refresh (stop, re-register the same beans, start)

    Parameters
    ----------
    config : ContextConfig, optional
        Context configuration, defaults are used if not provided
    sink : EventSink, optional
        Receiver of lifecycle events, built from the logging configuration
        if not provided

    Raises
    ------
    ConfigurationError
        If the configuration is invalid
    """

    def __init__(
        self,
        config: Optional[ContextConfig] = None,
        sink: Optional[EventSink] = None,
    ) -> None:
        self._config = config or ContextConfig()

        errors = self._config.validate()
        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                component=self._config.context_name,
                suggestion="Review and fix configuration errors",
            )

        if sink is None:
            sink = create_sink(
                self._config.logging.sink.value,
                self._config.logging.level.to_event_level(),
            )

        self._sink = sink
        self._logger = Logger(self.__class__.__name__)
        self._lock = threading.RLock()
        self._started = False

        self._registry = BeanRegistry(sink)
        self._injector = Injector(self._registry, sink, strict=self._config.injection.strict)
        self._lifecycle = LifecycleEngine(sink, self._config.lifecycle)
        self._scanner = ComponentScanner(self._registry, sink)
        self._validator = DependencyGraphValidator()

    @property
    def config(self) -> ContextConfig:
        return self._config

    @property
    def registry(self) -> BeanRegistry:
        return self._registry

    @property
    def lifecycle(self) -> LifecycleEngine:
        return self._lifecycle

    @property
    def scanner(self) -> ComponentScanner:
        return self._scanner

    @property
    def sink(self) -> EventSink:
        return self._sink

    @property
    def init_order(self) -> List[str]:
        """Names of the beans whose initialization succeeded, in order."""
        return self._lifecycle.get_init_order()

    @property
    def destroy_order(self) -> List[str]:
        """Names of the beans whose destruction was attempted, in order."""
        return self._lifecycle.get_destroy_order()

    # -- Registration ---------------------------------------------------------------------------

    def register_bean(self, name: str, instance: Any) -> None:
        """
        Register a bean with the scope declared by its class.

        If the context is already started the bean is initialized
        immediately.

        Raises
        ------
        DuplicateNameError
            If the name is already registered
        LifecycleHookError
            If the context is started and an init hook fails
        """
        scope = describe(type(instance)).scope
        self._register(name, instance, lambda: self._registry.register(name, instance, scope))

    def register_singleton(self, name: str, instance: Any) -> None:
        """Register a singleton bean, whatever its declared scope."""
        self._register(name, instance, lambda: self._registry.register_singleton(name, instance))

    def register_prototype(self, name: str, instance: Any) -> None:
        """Register a prototype bean, whatever its declared scope."""
        self._register(name, instance, lambda: self._registry.register_prototype(name, instance))

    def register_component(self, instance: Any, name: Optional[str] = None) -> str:
        """
        Register a component instance under its declared name and scope.

        Returns
        -------
        str
            The registered bean name

        Raises
        ------
        ConfigurationError
            If the instance's class is not a component
        """
        scanned = self._scanner.scan_component(instance, name)
        self._register(
            scanned.name,
            instance,
            lambda: self._registry.register(scanned.name, instance, scanned.scope),
        )
        return scanned.name

    def register_components(self, *instances: Any) -> List[str]:
        """Register several component instances, stopping at the first failure."""
        return [self.register_component(instance) for instance in instances]

    def register_by_interface(self, interface: Any, instance: Any, name: str) -> None:
        """
        Register a singleton bound to an interface.

        Raises
        ------
        TypeMismatchError
            If the instance does not satisfy the interface
        """
        self._register(
            name,
            instance,
            lambda: self._registry.register_by_interface(interface, instance, name),
        )

    def scan_module(self, module: Union[str, ModuleType], pattern: Optional[str] = None) -> List[str]:
        """
        Register every component class of a module, constructed without arguments.

        Returns
        -------
        List[str]
            The registered bean names
        """
        names = []
        for scanned in self._scanner.scan_module(module, pattern):
            self._register(
                scanned.name,
                scanned.instance,
                lambda s=scanned: self._registry.register(s.name, s.instance, s.scope),
            )
            names.append(scanned.name)
        return names

    def scan_attributes(self, instance: Any) -> List[str]:
        """
        Register every component held in an object's attributes, recursively.

        The object itself is not registered.

        Returns
        -------
        List[str]
            The registered bean names
        """
        names = []
        for scanned in self._scanner.scan_attributes(instance):
            self._register(
                scanned.name,
                scanned.instance,
                lambda s=scanned: self._registry.register(s.name, s.instance, s.scope),
            )
            names.append(scanned.name)
        return names

    def create_bean(self, name: str, factory: Callable[[], T], scope: Optional[Scope] = None) -> T:
        """
        Create a bean from a factory and register it.

        For prototype beans the factory is invoked again on every resolution.

        Returns
        -------
        T
            The registered instance
        """
        with self._lock:
            instance = self._registry.register_factory(name, factory, scope)
            if self._started:
                self._injector.inject_dependencies(instance)
                self._initialize(name, instance)
        return instance

    # -- Retrieval ------------------------------------------------------------------------------

    def get_bean(self, name: str) -> Any:
        """Get a bean by name, None if unknown."""
        return self._registry.get_bean(name)

    def get_bean_by_type(self, typ: Type[T]) -> Optional[T]:
        """Get the bean bound to a type, None if unbound."""
        return self._registry.get_bean_by_type(typ)

    def get_beans_of_type(self, typ: Any) -> Dict[str, Any]:
        """Get every bean assignable to, or implementing, a type."""
        return self._registry.get_beans_of_type(typ)

    def has_bean(self, name: str) -> bool:
        return self._registry.has_bean(name)

    def list_beans(self) -> List[str]:
        return self._registry.list_beans()

    def get_bean_definition(self, name: str) -> Optional[BeanRecord]:
        return self._registry.get_bean_definition(name)

    def auto_wire(self, instance: Any) -> None:
        """
        Inject dependencies into an instance, registered or not.

        Raises
        ------
        UnresolvedDependencyError
            In strict injection mode, when a required field cannot be resolved
        """
        self._injector.inject_dependencies(instance)

    def validate(self, partial: bool = False) -> ValidationResult:
        """Validate the dependency graph of the registered beans."""
        return self._validator.validate(self._registry, partial)

    # -- Lifecycle ------------------------------------------------------------------------------

    def is_started(self) -> bool:
        with self._lock:
            return self._started

    def start(self) -> None:
        """
        Start the context.

        Wires every registered bean, then initializes them in registration
        order. The first init failure aborts the start: the remaining beans
        are not initialized and the context stays not started.

        Raises
        ------
        ContextStateError
            If the context is already started
        ConfigurationError
            If graph validation is configured to fail and finds errors
        WiringError
            If strict injection fails for a bean
        LifecycleHookError
            If an init hook fails
        """
        with self._lock:
            if self._started:
                raise ContextStateError(
                    f"Application context '{self._config.context_name}' is already started"
                )

            emit(self._sink, ContextStarting())
            start = time.perf_counter()

            self._lifecycle.reset()

            if self._config.validation.enable_graph_validation:
                self._validate_graph()

            self._injector.wire_all()

            records = self._registry.records()
            for record in records:
                self._initialize(record.name, record.instance)

            self._started = True

            emit(self._sink, ContextStarted(
                duration=time.perf_counter() - start,
                component_count=len(records),
            ))
            self._logger.info(
                f"Application context '{self._config.context_name}' started with {len(records)} beans"
            )

    def stop(self) -> List[LifecycleHookError]:
        """
        Stop the context.

        Destroys every bean in reverse registration order, continuing past
        failures, then clears the registry.

        Returns
        -------
        List[LifecycleHookError]
            Destroy failures, empty on a clean stop

        Raises
        ------
        ContextStateError
            If the context is not started
        """
        with self._lock:
            if not self._started:
                raise ContextStateError(
                    f"Application context '{self._config.context_name}' is not started"
                )

            emit(self._sink, ContextStopping())
            start = time.perf_counter()

            errors: List[LifecycleHookError] = []
            for record in reversed(self._registry.records()):
                self._registry.set_phase(record.name, BeanPhase.DESTROYING)
                try:
                    self._lifecycle.process_destruction(record.name, record.instance)
                except LifecycleHookError as e:
                    self._registry.set_phase(record.name, BeanPhase.FAILED)
                    self._logger.error(f"Error destroying bean '{record.name}': {e}")
                    errors.append(e)
                else:
                    self._registry.set_phase(record.name, BeanPhase.DESTROYED)

            self._registry.destroy()
            self._started = False

            emit(self._sink, ContextStopped(
                duration=time.perf_counter() - start,
                error_count=len(errors),
            ))
            self._logger.info(
                f"Application context '{self._config.context_name}' stopped "
                f"({len(errors)} destroy errors)"
            )

            return errors

    def refresh(self) -> List[LifecycleHookError]:
        """
        Restart the context with the same beans.

        When started, the context is stopped, its beans are registered again
        (same names, instances, scopes, factories and interface bindings) and
        the context is started. When not started, this is a plain start.

        Returns
        -------
        List[LifecycleHookError]
            Destroy failures of the stop phase
        """
        with self._lock:
            if not self._started:
                self.start()
                return []

            snapshot = self._registry.records()
            errors = self.stop()

            for record in snapshot:
                self._registry.restore(record)

            self.start()
            return errors

    def __enter__(self) -> "ApplicationContext":
        if not self.is_started():
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.is_started():
            self.stop()

    def _register(self, name: str, instance: Any, register: Callable[[], None]) -> None:
        with self._lock:
            register()
            if self._started:
                self._injector.inject_dependencies(instance)
                self._initialize(name, instance)

    def _initialize(self, name: str, instance: Any) -> None:
        self._registry.set_phase(name, BeanPhase.INITIALIZING)
        try:
            self._lifecycle.process_initialization(name, instance)
        except LifecycleHookError as e:
            self._registry.set_phase(name, BeanPhase.FAILED)
            self._logger.error(f"Failed to initialize bean '{name}': {e}")
            raise
        self._registry.set_phase(name, BeanPhase.READY)

    def _validate_graph(self) -> None:
        result = self._validator.validate(self._registry)

        for issue in result.get_errors():
            self._logger.error(f"{issue.bean}: {issue.message}")
        for issue in result.get_warnings():
            self._logger.warning(f"{issue.bean}: {issue.message}")

        if self._config.validation.fail_on_errors and not result.is_valid:
            raise ConfigurationError(
                f"Dependency graph validation failed\n{result.format_report()}",
                component=self._config.context_name,
                suggestion="Register the missing beans or break the prototype cycles",
            )
