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
Component metadata: scopes, injection points and the descriptor resolver.

Components declare their metadata on the class itself::

    @component("svc", init_method="warm_up")
    class UserService:
        repository: UserRepository = inject("repo")
        cache: Optional[Cache] = inject()

`describe(UserService)` turns those declarations into an immutable
`ComponentDescriptor`, built once per class.
"""

import functools
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar, Union

from beanpod.exceptions import ConfigurationError


T = TypeVar("T")

ComponentFactory = Callable[[], Any]

COMPONENT_ATTRIBUTE = "__beanpod_component__"

# Class name suffixes that make an undecorated class a component
CONVENTION_SUFFIXES = ("Service", "Repository", "Controller", "Component")


class Scope(str, Enum):
    """Bean scope options."""
    SINGLETON = "singleton"    # One shared instance
    PROTOTYPE = "prototype"    # Fresh instance on every resolution


class Binding(str, Enum):
    """How an injected attribute finds its bean."""
    BY_NAME = "by_name"
    BY_TYPE = "by_type"


@dataclass(frozen=True)
class FieldSpec:
    """Describes one injectable attribute."""

    field_name: str
    target_type: Optional[Any]
    binding: Binding
    bean_name: Optional[str] = None
    optional: bool = False

    @property
    def dependency(self) -> Any:
        """The bean name or type this field resolves against."""
        if self.binding == Binding.BY_NAME:
            return self.bean_name
        return self.target_type


@dataclass(frozen=True)
class ComponentDescriptor:
    """Static metadata describing a component class."""

    component_type: type
    name: Optional[str] = None
    scope: Scope = Scope.SINGLETON
    inject_fields: Tuple[FieldSpec, ...] = ()
    init_method: Optional[str] = None
    destroy_method: Optional[str] = None
    stereotype: Optional[str] = None

    @property
    def is_component(self) -> bool:
        """Whether the class is a component (declared or by naming convention)."""
        return self.name is not None

    @property
    def is_singleton(self) -> bool:
        return self.scope == Scope.SINGLETON


class Inject:
    """
    Class attribute marking an injection point.

    Behaves as a data descriptor: reads return ``None`` until the container
    (or user code) assigns a value on the instance.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        target_type: Optional[Any] = None,
        optional: bool = False,
    ) -> None:
        self.bean_name = name
        self.target_type = target_type
        self.optional = optional
        self.field_name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.field_name = name

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return instance.__dict__.get(self.field_name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.__dict__[self.field_name] = value

    def __repr__(self) -> str:
        target = self.bean_name or getattr(self.target_type, "__name__", None) or "<by type>"
        return f"Inject({self.field_name} <- {target})"


def inject(
    name: Optional[str] = None,
    *,
    type: Optional[Any] = None,
    optional: bool = False,
) -> Any:
    """
    Declare an injected attribute.

    Parameters
    ----------
    name : str, optional
        Bean name to bind by name. When omitted the attribute is bound by type.
    type : type, optional
        Target type, overrides the attribute annotation.
    optional : bool
        Whether a miss is acceptable even in strict injection mode.
        ``Optional[X]`` annotations imply ``optional=True``.
    """
    return Inject(name=name, target_type=type, optional=optional)


@dataclass(frozen=True)
class _ComponentOptions:
    name: Optional[str]
    scope: Scope
    init_method: Optional[str]
    destroy_method: Optional[str]
    stereotype: str


def component(
    name: Union[str, Type[T], None] = None,
    *,
    scope: Union[Scope, str] = Scope.SINGLETON,
    init_method: Optional[str] = None,
    destroy_method: Optional[str] = None,
    stereotype: str = "component",
) -> Any:
    """
    Class decorator declaring a component.

    Usable bare (``@component``) or with options
    (``@component("repo", scope="prototype")``). The name defaults to the
    lower-cased class name.

    Parameters
    ----------
    name : str, optional
        Bean name.
    scope : Scope or str
        Bean scope, singleton by default.
    init_method : str, optional
        Name of a custom init method, called after the standard hooks.
    destroy_method : str, optional
        Name of a custom destroy method, called after the standard hooks.
    """
    if isinstance(name, type):
        return component(stereotype=stereotype)(name)

    if isinstance(scope, str):
        scope = Scope(scope)

    def decorator(cls: Type[T]) -> Type[T]:
        options = _ComponentOptions(
            name=name or cls.__name__.lower(),
            scope=scope,
            init_method=init_method,
            destroy_method=destroy_method,
            stereotype=stereotype,
        )
        setattr(cls, COMPONENT_ATTRIBUTE, options)
        return cls

    return decorator


service = functools.partial(component, stereotype="service")
repository = functools.partial(component, stereotype="repository")
controller = functools.partial(component, stereotype="controller")


@functools.lru_cache(maxsize=None)
def describe(cls: type) -> ComponentDescriptor:
    """
    Build the component descriptor for a class.

    The result is cached per class. Injection points are collected along the
    MRO so subclasses inherit the fields of their bases.

    Parameters
    ----------
    cls : type
        Component class

    Returns
    -------
    ComponentDescriptor

    Raises
    ------
    ConfigurationError
        If a by-type injection point has no resolvable target type
    """
    options: Optional[_ComponentOptions] = cls.__dict__.get(COMPONENT_ATTRIBUTE)
    hints = _type_hints(cls)

    fields: Dict[str, FieldSpec] = {}
    for klass in reversed(cls.__mro__):
        for attr_name, value in vars(klass).items():
            if isinstance(value, Inject):
                fields[attr_name] = _field_spec(cls, attr_name, value, hints.get(attr_name))

    if options:
        return ComponentDescriptor(
            component_type=cls,
            name=options.name,
            scope=options.scope,
            inject_fields=tuple(fields.values()),
            init_method=options.init_method,
            destroy_method=options.destroy_method,
            stereotype=options.stereotype,
        )

    return ComponentDescriptor(
        component_type=cls,
        name=_conventional_name(cls),
        inject_fields=tuple(fields.values()),
    )


def is_component(cls: type) -> bool:
    """Check if class is a component."""
    return describe(cls).is_component


def get_component_name(cls: type) -> Optional[str]:
    """Get the declared or conventional component name, if any."""
    return describe(cls).name


def get_scope(cls: type) -> Scope:
    """Get the component scope, singleton unless declared otherwise."""
    return describe(cls).scope


def _conventional_name(cls: type) -> Optional[str]:
    if cls.__name__.endswith(CONVENTION_SUFFIXES):
        return cls.__name__.lower()
    return None


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Forward references that cannot be resolved; keep the real types only
        hints: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            for attr_name, annotation in vars(klass).get("__annotations__", {}).items():
                if not isinstance(annotation, str):
                    hints[attr_name] = annotation
        return hints


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0], True
    return annotation, False


def _field_spec(
    cls: type,
    attr_name: str,
    marker: Inject,
    annotation: Optional[Any],
) -> FieldSpec:
    target_type = marker.target_type
    optional = marker.optional

    if target_type is None and annotation is not None:
        target_type, implied_optional = _unwrap_optional(annotation)
        optional = optional or implied_optional

    if marker.bean_name:
        return FieldSpec(
            field_name=attr_name,
            target_type=target_type,
            binding=Binding.BY_NAME,
            bean_name=marker.bean_name,
            optional=optional,
        )

    if target_type is None:
        raise ConfigurationError(
            f"Injection point '{cls.__name__}.{attr_name}' has no bean name and no type",
            component=cls.__qualname__,
            suggestion="Annotate the attribute or pass inject(name=...) / inject(type=...)",
        )

    return FieldSpec(
        field_name=attr_name,
        target_type=target_type,
        binding=Binding.BY_TYPE,
        optional=optional,
    )


def describe_instance(instance: Any) -> ComponentDescriptor:
    """Shortcut for ``describe(type(instance))``."""
    return describe(type(instance))

