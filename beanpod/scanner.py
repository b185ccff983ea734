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
Component discovery.
"""

import fnmatch
import importlib
import inspect
import time
from dataclasses import dataclass
from types import ModuleType
from typing import Any, List, Optional, Set, Type, Union

from nautilus_trader.common.component import Logger

from beanpod.descriptors import COMPONENT_ATTRIBUTE, ComponentDescriptor, Scope, describe
from beanpod.events import ComponentScanned, ScanCompleted, ScanStarting
from beanpod.exceptions import BeanCreationError, ConfigurationError
from beanpod.registry import BeanRegistry
from beanpod.sinks import EventSink, emit


@dataclass(frozen=True)
class ScannedComponent:
    """A component instance ready to be registered."""

    name: str
    instance: Any
    scope: Scope
    descriptor: ComponentDescriptor


class ComponentScanner:
    """
    Turns component instances into registrations.

    Instances are accepted when their class is decorated with ``@component``
    (or one of its aliases) or follows the naming convention (class name
    ending in ``Service``, ``Repository``, ``Controller`` or ``Component``).

    Parameters
    ----------
    registry : BeanRegistry
        Registry the scanned components are registered in
    sink : EventSink, optional
        Event receiver, defaults to the registry's sink
    """

    def __init__(self, registry: BeanRegistry, sink: Optional[EventSink] = None) -> None:
        self._registry = registry
        self._sink = sink if sink is not None else registry.sink
        self._logger = Logger(self.__class__.__name__)

    def scan_component(self, instance: Any, name: Optional[str] = None) -> ScannedComponent:
        """
        Extract the registration of a component instance.

        Parameters
        ----------
        instance : Any
            Component instance
        name : str, optional
            Bean name overriding the declared one

        Returns
        -------
        ScannedComponent

        Raises
        ------
        ConfigurationError
            If the instance's class is not a component
        """
        cls = type(instance)
        module = cls.__module__
        emit(self._sink, ScanStarting(component_type=cls.__qualname__, module=module))

        start = time.perf_counter()
        try:
            descriptor = describe(cls)
            if name is None and not descriptor.is_component:
                raise ConfigurationError(
                    f"{cls.__qualname__} is not a component",
                    component=cls.__qualname__,
                    suggestion="Decorate the class with @component or pass an explicit name",
                )
        except ConfigurationError as e:
            emit(self._sink, ScanCompleted(
                component_type=cls.__qualname__,
                module=module,
                duration=time.perf_counter() - start,
                error=str(e),
            ))
            raise

        scanned = ScannedComponent(
            name=name or descriptor.name,
            instance=instance,
            scope=descriptor.scope,
            descriptor=descriptor,
        )

        tags = {"name": scanned.name, "scope": scanned.scope.value}
        if descriptor.stereotype:
            tags["stereotype"] = descriptor.stereotype

        emit(self._sink, ComponentScanned(component_type=cls.__qualname__, module=module, tags=tags))
        emit(self._sink, ScanCompleted(
            component_type=cls.__qualname__,
            module=module,
            duration=time.perf_counter() - start,
            component_name=scanned.name,
            scope=scanned.scope.value,
        ))

        return scanned

    def register_component(self, instance: Any, name: Optional[str] = None) -> str:
        """
        Scan a component instance and register it with its declared scope.

        Returns
        -------
        str
            The registered bean name
        """
        scanned = self.scan_component(instance, name)
        self._registry.register(scanned.name, scanned.instance, scanned.scope)
        return scanned.name

    def scan_and_register(self, *instances: Any) -> List[str]:
        """Register several component instances, stopping at the first failure."""
        return [self.register_component(instance) for instance in instances]

    def register_with_interface(
        self,
        interface: Any,
        instance: Any,
        name: Optional[str] = None,
    ) -> str:
        """
        Scan a component instance and register it bound to an interface.

        Returns
        -------
        str
            The registered bean name
        """
        scanned = self.scan_component(instance, name)
        self._registry.register_by_interface(interface, scanned.instance, scanned.name)
        return scanned.name

    def find_components(
        self,
        module: Union[str, ModuleType],
        pattern: Optional[str] = None,
    ) -> List[Type]:
        """
        Find the component classes defined in a module.

        Only classes decorated with ``@component`` (or an alias) and defined
        in the module itself are returned, in definition order.

        Parameters
        ----------
        module : str or module
            Module, or dotted module name to import
        pattern : str, optional
            Class name pattern to match (e.g., "*Service")

        Raises
        ------
        ConfigurationError
            If the module cannot be imported
        """
        if isinstance(module, str):
            module_name = module
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise ConfigurationError(
                    f"Failed to import module '{module_name}' during component scanning",
                    suggestion="Check that the module exists and has no import errors",
                ) from e

        found = []
        for _, obj in vars(module).items():
            if not inspect.isclass(obj) or obj.__module__ != module.__name__:
                continue
            if COMPONENT_ATTRIBUTE not in obj.__dict__ or inspect.isabstract(obj):
                continue
            if pattern and not fnmatch.fnmatch(obj.__name__, pattern):
                continue
            found.append(obj)

        return found

    def scan_module(
        self,
        module: Union[str, ModuleType],
        pattern: Optional[str] = None,
    ) -> List[ScannedComponent]:
        """
        Instantiate every component class of a module and scan it.

        Classes are constructed without arguments. Nothing is registered.

        Raises
        ------
        BeanCreationError
            If a component class cannot be constructed without arguments
        """
        scanned = []
        for cls in self.find_components(module, pattern):
            try:
                instance = cls()
            except Exception as e:
                raise BeanCreationError(
                    f"Failed to instantiate scanned component {cls.__qualname__}",
                    bean_name=describe(cls).name,
                    original_error=e,
                ) from e
            scanned.append(self.scan_component(instance))

        self._logger.debug(f"Scanned {len(scanned)} components")
        return scanned

    def scan_attributes(self, instance: Any) -> List[ScannedComponent]:
        """
        Scan the components held in an object's attributes.

        Attribute values are visited in assignment order and searched
        recursively, so components held by nested objects are found too.
        Injection points are skipped and each object is visited once.
        Nothing is registered.

        Parameters
        ----------
        instance : Any
            Object whose attributes are scanned, not scanned itself

        Returns
        -------
        List[ScannedComponent]
        """
        scanned: List[ScannedComponent] = []
        self._scan_attributes(instance, scanned, {id(instance)})

        self._logger.debug(
            f"Scanned {len(scanned)} components from attributes of {type(instance).__qualname__}"
        )
        return scanned

    def _scan_attributes(self, instance: Any, scanned: List[ScannedComponent], seen: Set[int]) -> None:
        attributes = getattr(instance, "__dict__", None)
        if not isinstance(attributes, dict):
            return

        injected = {spec.field_name for spec in describe(type(instance)).inject_fields}
        for attribute, value in list(attributes.items()):
            if attribute in injected or value is None or id(value) in seen:
                continue
            if inspect.isclass(value) or inspect.ismodule(value) or inspect.isroutine(value):
                continue
            if not hasattr(value, "__dict__"):
                continue

            seen.add(id(value))
            if describe(type(value)).is_component:
                scanned.append(self.scan_component(value))
            self._scan_attributes(value, scanned, seen)
