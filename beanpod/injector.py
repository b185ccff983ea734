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
Attribute injection into already-allocated instances.
"""

from typing import Any, Optional

from nautilus_trader.common.component import Logger

from beanpod.descriptors import Binding, FieldSpec, describe
from beanpod.events import DependencyInjected, DependencyInjectionFailed
from beanpod.exceptions import (
    BeanCreationError,
    BeanpodError,
    CircularDependencyError,
    UnresolvedDependencyError,
    WiringError,
)
from beanpod.registry import BeanRegistry, satisfies
from beanpod.sinks import EventSink, emit


class Injector:
    """
    Populates the injection points of instances from a registry.

    Unresolved dependencies, including prototypes that cannot be built,
    are reported as `DependencyInjectionFailed` events and the attribute
    keeps its zero value (None). In strict mode a
    miss on a non-optional field raises `UnresolvedDependencyError` instead.

    Parameters
    ----------
    registry : BeanRegistry
        Registry to resolve dependencies from
    sink : EventSink, optional
        Event receiver, defaults to the registry's sink
    strict : bool
        Whether unresolved non-optional fields are fatal
    """

    def __init__(
        self,
        registry: BeanRegistry,
        sink: Optional[EventSink] = None,
        strict: bool = False,
    ) -> None:
        self._registry = registry
        self._sink = sink if sink is not None else registry.sink
        self._logger = Logger(self.__class__.__name__)
        self.strict = strict

        registry.attach_injector(self.inject_dependencies)

    def inject_dependencies(self, instance: Any) -> None:
        """
        Wire every injection point declared by the instance's class.

        Parameters
        ----------
        instance : Any
            Instance to populate, registered or not

        Raises
        ------
        UnresolvedDependencyError
            In strict mode, when a non-optional field cannot be resolved
        """
        descriptor = describe(type(instance))
        target_name = type(instance).__qualname__

        for spec in descriptor.inject_fields:
            error: Optional[str] = None
            try:
                dependency = self._resolve(spec)
            except BeanCreationError as e:
                dependency, error = None, "; ".join(str(e).splitlines())
            except CircularDependencyError as e:
                # Inside a prototype build the cycle belongs to the outermost caller
                if self._registry.in_creation():
                    raise
                dependency, error = None, "; ".join(str(e).splitlines())

            if error is None and dependency is not None and (
                spec.target_type is None or satisfies(dependency, spec.target_type)
            ):
                setattr(instance, spec.field_name, dependency)
                emit(self._sink, DependencyInjected(
                    target_type=target_name,
                    dependency_type=type(dependency).__qualname__,
                    field_name=spec.field_name,
                    by_name=spec.binding == Binding.BY_NAME,
                ))
                continue

            if error is None and dependency is None:
                error = "dependency not found"
            elif error is None:
                error = (
                    f"{type(dependency).__qualname__} is not assignable to "
                    f"{_describe_dependency(spec.target_type)}"
                )

            emit(self._sink, DependencyInjectionFailed(
                target_type=target_name,
                dependency_type=_describe_dependency(spec.dependency),
                field_name=spec.field_name,
                error=error,
            ))

            if self.strict and not spec.optional:
                raise UnresolvedDependencyError(
                    f"Failed to inject required dependency '{spec.field_name}' "
                    f"into '{target_name}': {error}",
                    target=type(instance),
                    field_name=spec.field_name,
                    dependency=spec.dependency,
                )

    def wire_all(self) -> int:
        """
        Inject dependencies into every registered bean, in registration order.

        Returns
        -------
        int
            Number of beans wired

        Raises
        ------
        WiringError
            On the first bean that fails, naming it
        """
        count = 0
        for record in self._registry.records():
            try:
                self.inject_dependencies(record.instance)
            except BeanpodError as e:
                raise WiringError(record.name, e) from e
            count += 1

        self._logger.debug(f"Wired {count} beans")
        return count

    def _resolve(self, spec: FieldSpec) -> Any:
        if spec.binding == Binding.BY_NAME:
            return self._registry.get_bean(spec.bean_name)
        return self._registry.get_bean_by_type(spec.target_type)


def _describe_dependency(dependency: Any) -> str:
    if isinstance(dependency, str):
        return dependency
    return getattr(dependency, "__qualname__", None) or repr(dependency)
