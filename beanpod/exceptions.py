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
Container and lifecycle exceptions.
"""

from typing import Any, List, Optional


class BeanpodError(Exception):
    """
    Base exception for all container errors.

    This is the root exception type for registration, injection and
    lifecycle failures.
    """
    pass


class ConfigurationError(BeanpodError):
    """
    Exception raised when container configuration is invalid.

    This includes:
    - Configuration files that cannot be read or parsed
    - Invalid component declarations
    - Configuration validation errors
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.component = component
        self.suggestion = suggestion

    def __str__(self) -> str:
        parts = [super().__str__()]

        if self.component:
            parts.append(f"Component: {self.component}")

        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")

        return "\n".join(parts)


class DuplicateNameError(BeanpodError):
    """
    Exception raised when a bean name is registered twice.

    The registry is left unchanged.
    """

    def __init__(self, name: str) -> None:
        super().__init__(f"Bean with name '{name}' already exists")
        self.name = name


class TypeMismatchError(BeanpodError):
    """
    Exception raised when an instance does not satisfy the interface it is
    being bound to.
    """

    def __init__(
        self,
        message: str,
        interface: Optional[type] = None,
        implementation: Optional[type] = None,
    ) -> None:
        super().__init__(message)
        self.interface = interface
        self.implementation = implementation

    def __str__(self) -> str:
        parts = [super().__str__()]

        if self.interface is not None:
            parts.append(f"Interface: {_type_name(self.interface)}")

        if self.implementation is not None:
            parts.append(f"Implementation: {_type_name(self.implementation)}")

        return "\n".join(parts)


class UnresolvedDependencyError(BeanpodError):
    """
    Exception raised when a required attribute cannot be wired.

    Only raised in strict injection mode; otherwise a miss is reported as an
    event and the attribute is left unset.
    """

    def __init__(
        self,
        message: str,
        target: Optional[type] = None,
        field_name: Optional[str] = None,
        dependency: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.target = target
        self.field_name = field_name
        self.dependency = dependency

    def __str__(self) -> str:
        parts = [super().__str__()]

        if self.target is not None and self.field_name:
            parts.append(f"Field: {_type_name(self.target)}.{self.field_name}")

        if self.dependency is not None:
            dependency = self.dependency
            if isinstance(dependency, type):
                dependency = _type_name(dependency)
            parts.append(f"Dependency: {dependency}")

        return "\n".join(parts)


class CircularDependencyError(BeanpodError):
    """
    Exception raised when prototype construction loops back on itself.

    This prevents infinite recursion while wiring fresh instances.
    """

    def __init__(
        self,
        message: str,
        cycle_path: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.cycle_path = cycle_path or []

    def __str__(self) -> str:
        if self.cycle_path:
            return f"{super().__str__()}\nCycle: {' -> '.join(self.cycle_path)}"
        return super().__str__()


class BeanCreationError(BeanpodError):
    """
    Exception raised when a fresh prototype instance cannot be created.
    """

    def __init__(
        self,
        message: str,
        bean_name: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.bean_name = bean_name
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [super().__str__(), f"Bean: {self.bean_name}"]

        if self.original_error:
            parts.append(f"Original error: {self.original_error}")

        return "\n".join(parts)


class WiringError(BeanpodError):
    """
    Exception raised when wiring all registered beans stops on a failure.
    """

    def __init__(self, bean_name: str, original_error: Exception) -> None:
        super().__init__(f"Failed to inject dependencies for bean '{bean_name}'")
        self.bean_name = bean_name
        self.original_error = original_error

    def __str__(self) -> str:
        return f"{super().__str__()}\nCause: {self.original_error}"


class LifecycleHookError(BeanpodError):
    """
    Exception raised when an init or destroy hook fails.

    Fatal for initialization, recorded but non-fatal for destruction.
    """

    def __init__(
        self,
        bean_name: str,
        phase: str,
        original_error: Exception,
    ) -> None:
        super().__init__(f"Failed to execute {phase} for bean '{bean_name}'")
        self.bean_name = bean_name
        self.phase = phase
        self.original_error = original_error

    def __str__(self) -> str:
        return "\n".join([
            super().__str__(),
            f"Bean: {self.bean_name}",
            f"Phase: {self.phase}",
            f"Cause: {self.original_error!r}",
        ])


class ContextStateError(BeanpodError):
    """
    Exception raised when the application context is started or stopped
    from the wrong state.
    """
    pass


def _type_name(typ: Any) -> str:
    return getattr(typ, "__qualname__", None) or getattr(typ, "__name__", None) or repr(typ)
