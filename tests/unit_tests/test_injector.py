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
Tests for attribute injection.
"""

from typing import Optional

import pytest

from beanpod.descriptors import component, inject
from beanpod.events import DependencyInjected, DependencyInjectionFailed
from beanpod.exceptions import UnresolvedDependencyError, WiringError
from beanpod.injector import Injector
from beanpod.registry import BeanRegistry
from beanpod.sinks import RecordingEventSink


class Repository:
    def find(self, key):
        return f"value-{key}"


class Mailer:
    pass


@component("svc")
class Service:
    repository: Repository = inject("repo")
    mailer: Mailer = inject()
    audit: Optional[Mailer] = inject("audit")


@component("session", scope="prototype")
class Session:
    repository: Repository = inject()


@component("handler")
class Handler:
    session: Session = inject("session")


class Connection:
    def __init__(self, url):
        self.url = url


@component("client")
class Client:
    connection: Connection = inject("conn")


@component("ping", scope="prototype")
class Ping:
    pong = inject("pong")


@component("pong", scope="prototype")
class Pong:
    ping = inject("ping")


@component("relay")
class Relay:
    ping: Ping = inject("ping")


class TestInjectDependencies:
    """Test injection into single instances."""

    def setup_method(self):
        """Set up test fixtures."""
        self.sink = RecordingEventSink()
        self.registry = BeanRegistry(self.sink)
        self.injector = Injector(self.registry)
        self.repo = Repository()
        self.mailer = Mailer()

    def test_inject_by_name_and_by_type(self):
        # Arrange
        self.registry.register_singleton("repo", self.repo)
        self.registry.register_singleton("mailer", self.mailer)
        service = Service()

        # Act
        self.injector.inject_dependencies(service)

        # Assert
        assert service.repository is self.repo
        assert service.mailer is self.mailer
        injected = self.sink.events_of_type(DependencyInjected)
        assert [(e.field_name, e.by_name) for e in injected] == [
            ("repository", True),
            ("mailer", False),
        ]

    def test_missing_dependency_reported_and_left_unset(self):
        # Arrange
        self.registry.register_singleton("repo", self.repo)
        service = Service()

        # Act
        self.injector.inject_dependencies(service)

        # Assert
        assert service.repository is self.repo
        assert service.mailer is None
        assert service.audit is None
        failed = {e.field_name: e for e in self.sink.events_of_type(DependencyInjectionFailed)}
        assert set(failed) == {"mailer", "audit"}
        assert failed["mailer"].error == "dependency not found"
        assert failed["mailer"].dependency_type == "Mailer"
        assert failed["audit"].dependency_type == "audit"

    def test_not_assignable_dependency_reported(self):
        # Arrange
        self.registry.register_singleton("repo", self.mailer)
        service = Service()

        # Act
        self.injector.inject_dependencies(service)

        # Assert
        assert service.repository is None
        failed = [e for e in self.sink.events_of_type(DependencyInjectionFailed) if e.field_name == "repository"]
        assert "not assignable" in failed[0].error

    def test_unregistered_instance_can_be_wired(self):
        # Arrange
        self.registry.register_singleton("session", Session())
        self.registry.register_singleton("repo", self.repo)
        handler = Handler()

        # Act
        self.injector.inject_dependencies(handler)

        # Assert
        assert isinstance(handler.session, Session)
        assert not self.registry.has_bean("handler")

    def test_prototype_dependency_is_fresh_and_wired(self):
        # Arrange
        self.registry.register_singleton("repo", self.repo)
        self.registry.register_prototype("session", Session())
        first = Handler()
        second = Handler()

        # Act
        self.injector.inject_dependencies(first)
        self.injector.inject_dependencies(second)

        # Assert
        assert first.session is not second.session
        assert first.session.repository is self.repo
        assert second.session.repository is self.repo

    def test_unbuildable_prototype_reported_and_left_unset(self):
        # Arrange
        self.registry.register_prototype("conn", Connection("db://primary"))
        client = Client()

        # Act
        self.injector.inject_dependencies(client)

        # Assert
        assert client.connection is None
        (failed,) = self.sink.events_of_type(DependencyInjectionFailed)
        assert failed.field_name == "connection"
        assert "Failed to create prototype instance of Connection" in failed.error

    def test_prototype_cycle_reported_and_left_unset(self):
        # Arrange
        self.registry.register_prototype("ping", Ping())
        self.registry.register_prototype("pong", Pong())
        relay = Relay()

        # Act
        self.injector.inject_dependencies(relay)

        # Assert
        assert relay.ping is None
        (failed,) = self.sink.events_of_type(DependencyInjectionFailed)
        assert failed.field_name == "ping"
        assert "Circular dependency detected: ping -> pong -> ping" in failed.error
        assert not self.registry.in_creation()


class TestStrictInjection:
    """Test strict injection mode."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = BeanRegistry()
        self.injector = Injector(self.registry, strict=True)

    def test_required_miss_raises(self):
        # Arrange
        self.registry.register_singleton("repo", Repository())
        service = Service()

        # Act & Assert
        with pytest.raises(UnresolvedDependencyError) as exc_info:
            self.injector.inject_dependencies(service)

        assert exc_info.value.field_name == "mailer"
        assert exc_info.value.dependency is Mailer
        assert "Service.mailer" in str(exc_info.value)

    def test_optional_miss_is_not_fatal(self):
        # Arrange
        self.registry.register_singleton("repo", Repository())
        self.registry.register_singleton("mailer", Mailer())
        service = Service()

        # Act
        self.injector.inject_dependencies(service)

        # Assert
        assert service.audit is None

    def test_wire_all_names_failing_bean(self):
        # Arrange
        self.registry.register_singleton("repo", Repository())
        self.registry.register_singleton("svc", Service())

        # Act & Assert
        with pytest.raises(WiringError) as exc_info:
            self.injector.wire_all()

        assert exc_info.value.bean_name == "svc"
        assert isinstance(exc_info.value.original_error, UnresolvedDependencyError)

    def test_unbuildable_prototype_raises(self):
        # Arrange
        self.registry.register_prototype("conn", Connection("db://primary"))
        client = Client()

        # Act & Assert
        with pytest.raises(UnresolvedDependencyError, match="Failed to create prototype instance") as exc_info:
            self.injector.inject_dependencies(client)

        assert exc_info.value.field_name == "connection"


class TestWireAll:
    """Test wiring of every registered bean."""

    def test_wire_all_in_registration_order(self):
        # Arrange
        sink = RecordingEventSink()
        registry = BeanRegistry(sink)
        injector = Injector(registry)
        repo = Repository()
        mailer = Mailer()
        service = Service()
        registry.register_singleton("svc", service)
        registry.register_singleton("repo", repo)
        registry.register_singleton("mailer", mailer)

        # Act
        count = injector.wire_all()

        # Assert
        assert count == 3
        assert service.repository is repo
        assert service.mailer is mailer
