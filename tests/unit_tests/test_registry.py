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
Tests for the bean registry.
"""

from typing import Protocol

import pytest

from beanpod.descriptors import Scope, component, inject
from beanpod.events import ComponentCreated, ComponentDestroyed, ComponentRegistered, ContainerCreated
from beanpod.exceptions import (
    BeanCreationError,
    CircularDependencyError,
    DuplicateNameError,
    TypeMismatchError,
)
from beanpod.injector import Injector
from beanpod.registry import BeanPhase, BeanRegistry, satisfies
from beanpod.sinks import RecordingEventSink


class Greeter(Protocol):
    def greet(self) -> str:
        ...


class Storage:
    def save(self, value):
        raise NotImplementedError


class MemoryStorage(Storage):
    def __init__(self):
        self.values = []

    def save(self, value):
        self.values.append(value)


class EnglishGreeter:
    def greet(self) -> str:
        return "hello"


class Counter:
    created = 0

    def __init__(self):
        Counter.created += 1


class NeedsArguments:
    def __init__(self, value):
        self.value = value


@component("ping", scope="prototype")
class Ping:
    pong = inject("pong")


@component("pong", scope="prototype")
class Pong:
    ping = inject("ping")


class TestRegistration:
    """Test bean registration."""

    def setup_method(self):
        """Set up test fixtures."""
        self.sink = RecordingEventSink()
        self.registry = BeanRegistry(self.sink)

    def test_container_created_event(self):
        # Assert
        assert len(self.sink.events_of_type(ContainerCreated)) == 1

    def test_register_singleton(self):
        # Arrange
        storage = MemoryStorage()

        # Act
        self.registry.register_singleton("storage", storage)

        # Assert
        assert self.registry.has_bean("storage")
        assert "storage" in self.registry
        assert len(self.registry) == 1
        record = self.registry.get_bean_definition("storage")
        assert record.declared_type is MemoryStorage
        assert record.scope == Scope.SINGLETON
        assert record.phase == BeanPhase.REGISTERED

        (event,) = self.sink.events_of_type(ComponentRegistered)
        assert event.component_id == "storage"
        assert event.scope == "singleton"

    def test_duplicate_name_leaves_registry_unchanged(self):
        # Arrange
        first = MemoryStorage()
        self.registry.register_singleton("storage", first)

        # Act & Assert
        with pytest.raises(DuplicateNameError, match="storage"):
            self.registry.register_prototype("storage", MemoryStorage())

        assert self.registry.get_bean("storage") is first
        assert self.registry.get_bean_definition("storage").scope == Scope.SINGLETON
        assert len(self.registry) == 1

    def test_empty_name_rejected(self):
        # Act & Assert
        with pytest.raises(ValueError):
            self.registry.register_singleton("", MemoryStorage())

    def test_none_instance_rejected(self):
        # Act & Assert
        with pytest.raises(ValueError):
            self.registry.register_singleton("nothing", None)

    def test_registration_order(self):
        # Arrange
        for name in ("c", "a", "b"):
            self.registry.register_singleton(name, MemoryStorage())

        # Assert
        assert self.registry.registration_order() == ["c", "a", "b"]
        assert sorted(self.registry.list_beans()) == ["a", "b", "c"]

    def test_last_registration_wins_type_mapping(self):
        # Arrange
        first = MemoryStorage()
        second = MemoryStorage()

        # Act
        self.registry.register_singleton("first", first)
        self.registry.register_singleton("second", second)

        # Assert
        assert self.registry.get_bean_by_type(MemoryStorage) is second
        assert self.registry.type_bindings()[MemoryStorage] == "second"


class TestResolution:
    """Test bean resolution by name and by type."""

    def setup_method(self):
        """Set up test fixtures."""
        self.sink = RecordingEventSink()
        self.registry = BeanRegistry(self.sink)

    def test_singleton_identity(self):
        # Arrange
        storage = MemoryStorage()
        self.registry.register_singleton("storage", storage)

        # Act
        first = self.registry.get_bean("storage")
        second = self.registry.get_bean("storage")

        # Assert
        assert first is storage
        assert second is storage

    def test_prototype_distinctness(self):
        # Arrange
        exemplar = MemoryStorage()
        self.registry.register_prototype("storage", exemplar)

        # Act
        first = self.registry.get_bean("storage")
        second = self.registry.get_bean("storage")

        # Assert
        assert isinstance(first, MemoryStorage)
        assert isinstance(second, MemoryStorage)
        assert first is not second
        assert first is not exemplar
        assert len(self.sink.events_of_type(ComponentCreated)) == 2

    def test_unknown_name_returns_none(self):
        # Assert
        assert self.registry.get_bean("missing") is None
        assert self.registry.get_bean_definition("missing") is None

    def test_type_round_trip(self):
        # Arrange
        storage = MemoryStorage()
        self.registry.register_singleton("storage", storage)

        # Act
        resolved = self.registry.get_bean_by_type(MemoryStorage)

        # Assert
        assert resolved is storage

    def test_base_class_not_mapped_implicitly(self):
        # Arrange
        self.registry.register_singleton("storage", MemoryStorage())

        # Assert
        assert self.registry.get_bean_by_type(Storage) is None

    def test_register_by_interface_with_base_class(self):
        # Arrange
        storage = MemoryStorage()

        # Act
        self.registry.register_by_interface(Storage, storage, "storage")

        # Assert
        assert self.registry.get_bean_by_type(Storage) is storage
        assert self.registry.get_bean_by_type(MemoryStorage) is storage

    def test_register_by_interface_with_protocol(self):
        # Arrange
        greeter = EnglishGreeter()

        # Act
        self.registry.register_by_interface(Greeter, greeter, "greeter")

        # Assert
        assert self.registry.get_bean_by_type(Greeter) is greeter

    def test_register_by_interface_type_mismatch(self):
        # Act & Assert
        with pytest.raises(TypeMismatchError, match="does not implement interface Greeter"):
            self.registry.register_by_interface(Greeter, MemoryStorage(), "storage")

        assert not self.registry.has_bean("storage")

    def test_get_beans_of_type(self):
        # Arrange
        self.registry.register_singleton("memory", MemoryStorage())
        self.registry.register_singleton("greeter", EnglishGreeter())
        self.registry.register_prototype("other", MemoryStorage())

        # Act
        beans = self.registry.get_beans_of_type(Storage)

        # Assert
        assert set(beans) == {"memory", "other"}
        assert all(isinstance(bean, MemoryStorage) for bean in beans.values())

    def test_prototype_without_default_constructor(self):
        # Arrange
        self.registry.register_prototype("needs", NeedsArguments(1))

        # Act & Assert
        with pytest.raises(BeanCreationError) as exc_info:
            self.registry.get_bean("needs")

        assert exc_info.value.bean_name == "needs"
        assert isinstance(exc_info.value.original_error, TypeError)

    def test_beans_of_type_skips_prototypes_that_cannot_be_built(self):
        # Arrange
        storage = MemoryStorage()
        self.registry.register_singleton("memory", storage)
        self.registry.register_prototype("needs", NeedsArguments(1))

        # Act
        beans = self.registry.get_beans_of_type(object)

        # Assert
        assert beans == {"memory": storage}

    def test_beans_of_type_skips_prototype_cycles(self):
        # Arrange
        Injector(self.registry)
        self.registry.register_singleton("memory", MemoryStorage())
        self.registry.register_prototype("ping", Ping())
        self.registry.register_prototype("pong", Pong())

        # Act
        beans = self.registry.get_beans_of_type(object)

        # Assert
        assert set(beans) == {"memory"}
        assert not self.registry.in_creation()

    def test_prototype_cycle_detected(self):
        # Arrange
        Injector(self.registry)
        self.registry.register_prototype("ping", Ping())
        self.registry.register_prototype("pong", Pong())

        # Act & Assert
        with pytest.raises(CircularDependencyError) as exc_info:
            self.registry.get_bean("ping")

        assert exc_info.value.cycle_path == ["ping", "pong", "ping"]

        # The resolution chain is unwound after the failure
        with pytest.raises(CircularDependencyError):
            self.registry.get_bean("pong")


class TestFactories:
    """Test factory registration."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = BeanRegistry()
        Counter.created = 0

    def test_singleton_factory_invoked_once(self):
        # Act
        instance = self.registry.register_factory("counter", Counter, Scope.SINGLETON)

        # Assert
        assert self.registry.get_bean("counter") is instance
        assert self.registry.get_bean("counter") is instance
        assert Counter.created == 1

    def test_prototype_factory_reinvoked(self):
        # Arrange
        calls = []

        def factory():
            calls.append(1)
            return NeedsArguments(len(calls))

        # Act
        self.registry.register_factory("needs", factory, Scope.PROTOTYPE)
        first = self.registry.get_bean("needs")
        second = self.registry.get_bean("needs")

        # Assert
        assert first.value == 2
        assert second.value == 3
        assert self.registry.get_bean_definition("needs").factory is factory

    def test_factory_duplicate_name_not_invoked(self):
        # Arrange
        self.registry.register_singleton("counter", Counter())

        # Act & Assert
        with pytest.raises(DuplicateNameError):
            self.registry.register_factory("counter", Counter)

        assert Counter.created == 1


class TestDestroy:
    """Test registry destruction."""

    def test_destroy_clears_without_calling_hooks(self):
        # Arrange
        sink = RecordingEventSink()
        registry = BeanRegistry(sink)
        destroyed = []

        class Resource:
            def destroy(self):
                destroyed.append(True)

        registry.register_singleton("a", Resource())
        registry.register_singleton("b", MemoryStorage())

        # Act
        registry.destroy()

        # Assert
        assert destroyed == []
        assert len(registry) == 0
        assert registry.type_bindings() == {}
        assert [e.component_id for e in sink.events_of_type(ComponentDestroyed)] == ["a", "b"]

    def test_restore_keeps_interface_bindings(self):
        # Arrange
        registry = BeanRegistry()
        storage = MemoryStorage()
        registry.register_by_interface(Storage, storage, "storage")
        (record,) = registry.records()
        registry.destroy()

        # Act
        registry.restore(record)

        # Assert
        assert registry.get_bean_by_type(Storage) is storage


class TestSatisfies:
    """Test the assignability check."""

    def test_nominal(self):
        assert satisfies(MemoryStorage(), Storage)
        assert not satisfies(EnglishGreeter(), Storage)

    def test_structural_protocol(self):
        assert satisfies(EnglishGreeter(), Greeter)
        assert not satisfies(MemoryStorage(), Greeter)
