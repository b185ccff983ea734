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
Bean registry: the single source of truth for bean identity, scope and type
resolution.
"""

import threading
import time
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from nautilus_trader.common.component import Logger

from beanpod.descriptors import ComponentDescriptor, ComponentFactory, Scope, describe
from beanpod.events import ComponentCreated, ComponentDestroyed, ComponentRegistered, ContainerCreated
from beanpod.exceptions import (
    BeanCreationError,
    BeanpodError,
    CircularDependencyError,
    DuplicateNameError,
    TypeMismatchError,
)
from beanpod.sinks import EventSink, emit


class BeanPhase(str, Enum):
    """Lifecycle phase of a registered bean."""
    REGISTERED = "registered"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"
    DESTROYING = "destroying"
    DESTROYED = "destroyed"


@dataclass
class BeanRecord:
    """A registered bean."""

    name: str
    declared_type: type
    scope: Scope
    instance: Any
    descriptor: ComponentDescriptor
    factory: Optional[ComponentFactory] = None
    interfaces: Tuple[Any, ...] = ()
    phase: BeanPhase = BeanPhase.REGISTERED

    @property
    def is_singleton(self) -> bool:
        return self.scope == Scope.SINGLETON


class BeanRegistry:
    """
    Registry of named beans.

    Owns the name -> record map and the type -> name map. Every access to
    either map goes through one re-entrant lock. Prototype resolution
    snapshots the record under the lock and constructs outside of it, so
    nested lookups made while injecting a fresh instance never deadlock.

    Parameters
    ----------
    sink : EventSink, optional
        Receiver of registration and creation events
    """

    def __init__(self, sink: Optional[EventSink] = None) -> None:
        self._beans: Dict[str, BeanRecord] = {}
        self._type_mapping: Dict[Any, str] = {}
        self._lock = threading.RLock()
        self._sink = sink
        self._logger = Logger(self.__class__.__name__)
        self._injector: Optional[Callable[[Any], None]] = None

        # Names of prototypes under construction, per thread
        self._creating = threading.local()

        emit(self._sink, ContainerCreated())

    @property
    def sink(self) -> Optional[EventSink]:
        return self._sink

    def attach_injector(self, injector: Callable[[Any], None]) -> None:
        """Set the callable used to wire freshly created prototype instances."""
        self._injector = injector

    def register_singleton(self, name: str, instance: Any) -> None:
        """
        Register a singleton bean.

        Raises
        ------
        DuplicateNameError
            If the name is already registered
        """
        self._register(name, instance, Scope.SINGLETON)

    def register_prototype(self, name: str, instance: Any) -> None:
        """
        Register a prototype bean.

        `instance` is kept as the registered exemplar; every resolution by
        name creates a fresh instance of its type.

        Raises
        ------
        DuplicateNameError
            If the name is already registered
        """
        self._register(name, instance, Scope.PROTOTYPE)

    def register(self, name: str, instance: Any, scope: Scope) -> None:
        """Register a bean with an explicit scope."""
        self._register(name, instance, Scope(scope))

    def register_by_interface(self, interface: Any, instance: Any, name: str) -> None:
        """
        Register a singleton and bind it to an interface.

        Parameters
        ----------
        interface : type
            Interface, base class or protocol the instance satisfies
        instance : Any
            Bean instance
        name : str
            Bean name

        Raises
        ------
        TypeMismatchError
            If the instance does not satisfy the interface
        DuplicateNameError
            If the name is already registered
        """
        if not satisfies(instance, interface):
            raise TypeMismatchError(
                f"Type {type(instance).__name__} does not implement interface "
                f"{getattr(interface, '__name__', interface)}",
                interface=interface,
                implementation=type(instance),
            )

        self._register(name, instance, Scope.SINGLETON, interfaces=(interface,))

    def register_factory(
        self,
        name: str,
        factory: ComponentFactory,
        scope: Optional[Scope] = None,
    ) -> Any:
        """
        Register a bean produced by a factory.

        The factory is invoked once to produce the registered instance. For
        prototype beans it is invoked again on every resolution.

        Parameters
        ----------
        name : str
            Bean name
        factory : Callable[[], Any]
            Zero-argument factory
        scope : Scope, optional
            Bean scope, taken from the produced type's descriptor if not provided

        Returns
        -------
        Any
            The registered instance
        """
        with self._lock:
            if name in self._beans:
                raise DuplicateNameError(name)

        instance = factory()
        if scope is None:
            scope = describe(type(instance)).scope

        self._register(name, instance, Scope(scope), factory=factory)
        return instance

    def restore(self, record: BeanRecord) -> None:
        """
        Register a bean again from a record snapshot.

        Keeps the instance, scope, factory and interface bindings of the
        record. The phase starts over at REGISTERED.
        """
        self._register(
            record.name,
            record.instance,
            record.scope,
            factory=record.factory,
            interfaces=record.interfaces,
        )

    def get_bean(self, name: str) -> Any:
        """
        Get a bean by name.

        Returns the stored instance for singletons and a freshly created,
        injected instance for prototypes. Returns None for unknown names.
        """
        with self._lock:
            record = self._beans.get(name)

        if record is None:
            return None

        if record.is_singleton:
            return record.instance

        return self._create_prototype(record)

    def get_bean_by_type(self, typ: Any) -> Any:
        """Get the bean mapped to a type, or None."""
        with self._lock:
            name = self._type_mapping.get(typ)

        if name is None:
            return None

        return self.get_bean(name)

    def get_beans_of_type(self, typ: Any) -> Dict[str, Any]:
        """
        Get every bean assignable to, or implementing, a type.

        This is a linear scan. Prototype beans are only instantiated when
        their declared type matches. Prototypes that cannot be built are
        left out and logged.
        """
        with self._lock:
            records = list(self._beans.values())

        result = {}
        for record in records:
            if not satisfies(record.instance, typ):
                continue
            try:
                bean = self.get_bean(record.name)
            except (BeanCreationError, CircularDependencyError) as e:
                self._logger.warning(f"Skipping bean '{record.name}': {e}")
                continue
            if bean is not None:
                result[record.name] = bean

        return result

    def list_beans(self) -> List[str]:
        """List registered bean names. The order is not part of the contract."""
        with self._lock:
            return list(self._beans)

    def registration_order(self) -> List[str]:
        """List registered bean names in registration order."""
        with self._lock:
            return [record.name for record in self._beans.values()]

    def records(self) -> List[BeanRecord]:
        """Snapshot of all records in registration order."""
        with self._lock:
            return list(self._beans.values())

    def has_bean(self, name: str) -> bool:
        with self._lock:
            return name in self._beans

    def get_bean_definition(self, name: str) -> Optional[BeanRecord]:
        with self._lock:
            return self._beans.get(name)

    def type_bindings(self) -> Dict[Any, str]:
        """Snapshot of the type -> bean name mapping."""
        with self._lock:
            return dict(self._type_mapping)

    def set_phase(self, name: str, phase: BeanPhase) -> None:
        with self._lock:
            record = self._beans.get(name)
            if record is not None:
                record.phase = phase

    def destroy(self) -> None:
        """
        Release every record and clear all mappings.

        Lifecycle hooks are never invoked here; destruction hooks belong to
        the lifecycle engine.
        """
        with self._lock:
            records = list(self._beans.values())
            self._beans = {}
            self._type_mapping = {}

        for record in records:
            emit(self._sink, ComponentDestroyed(
                component_id=record.name,
                component_type=record.declared_type.__qualname__,
            ))

        self._logger.debug(f"Registry cleared ({len(records)} beans released)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._beans)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._beans

    def _register(
        self,
        name: str,
        instance: Any,
        scope: Scope,
        factory: Optional[ComponentFactory] = None,
        interfaces: Tuple[Any, ...] = (),
    ) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Bean name must be a non-empty string, was {name!r}")
        if instance is None:
            raise ValueError(f"Cannot register None as bean '{name}'")

        declared_type = type(instance)
        record = BeanRecord(
            name=name,
            declared_type=declared_type,
            scope=scope,
            instance=instance,
            descriptor=describe(declared_type),
            factory=factory,
            interfaces=interfaces,
        )

        with self._lock:
            if name in self._beans:
                raise DuplicateNameError(name)

            self._beans[name] = record
            for typ in (declared_type, *interfaces):
                previous = self._type_mapping.get(typ)
                if previous is not None and previous != name:
                    self._logger.warning(
                        f"Type {getattr(typ, '__name__', typ)} rebound from '{previous}' to '{name}'"
                    )
                self._type_mapping[typ] = name

        emit(self._sink, ComponentRegistered(
            component_id=name,
            component_type=declared_type.__qualname__,
            scope=scope.value,
        ))

    def in_creation(self) -> bool:
        """Whether the calling thread is building a prototype instance."""
        return bool(getattr(self._creating, "chain", None))

    def _creation_chain(self) -> List[str]:
        chain = getattr(self._creating, "chain", None)
        if chain is None:
            chain = []
            self._creating.chain = chain
        return chain

    def _create_prototype(self, record: BeanRecord) -> Any:
        chain = self._creation_chain()
        if record.name in chain:
            cycle_path = chain[chain.index(record.name):] + [record.name]
            raise CircularDependencyError(
                f"Circular dependency detected: {' -> '.join(cycle_path)}",
                cycle_path=cycle_path,
            )

        start = time.perf_counter()
        chain.append(record.name)
        try:
            try:
                instance = record.factory() if record.factory else record.declared_type()
            except BeanpodError:
                raise
            except Exception as e:
                raise BeanCreationError(
                    f"Failed to create prototype instance of {record.declared_type.__name__}",
                    bean_name=record.name,
                    original_error=e,
                ) from e

            if self._injector is not None:
                self._injector(instance)
        finally:
            chain.pop()

        emit(self._sink, ComponentCreated(
            component_id=record.name,
            component_type=record.declared_type.__qualname__,
            creation_time=time.perf_counter() - start,
        ))
        return instance


def satisfies(instance: Any, interface: Any) -> bool:
    """
    Check whether an instance satisfies a type.

    Uses `isinstance` where possible. Protocols that are not runtime
    checkable are checked structurally against their public members.
    """
    if interface is Any or interface is object:
        return True
    try:
        return isinstance(instance, interface)
    except TypeError:
        pass

    if getattr(interface, "_is_protocol", False):
        return all(hasattr(instance, member) for member in protocol_members(interface))

    origin = typing.get_origin(interface)
    if origin is not None and origin is not interface:
        return satisfies(instance, origin)

    return False


def protocol_members(interface: type) -> Set[str]:
    """Public attribute names declared by a protocol and its protocol bases."""
    members: Set[str] = set()
    for base in interface.__mro__:
        if base in (object, typing.Protocol, typing.Generic):
            continue
        members.update(name for name in vars(base) if not name.startswith("_"))
        members.update(name for name in getattr(base, "__annotations__", {}) if not name.startswith("_"))
    return members
