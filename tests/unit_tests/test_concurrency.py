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
Tests for concurrent registry access.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from beanpod.descriptors import component, inject
from beanpod.exceptions import DuplicateNameError
from beanpod.injector import Injector
from beanpod.registry import BeanRegistry


class Config:
    pass


@component("worker", scope="prototype")
class Worker:
    config: Config = inject()


class TestConcurrentRegistry:
    """Test the registry under concurrent use."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = BeanRegistry()
        Injector(self.registry)

    def test_concurrent_registration_of_distinct_names(self):
        # Act
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(
                lambda i: self.registry.register_singleton(f"bean{i}", Config()),
                range(200),
            ))

        # Assert
        assert len(self.registry) == 200

    def test_concurrent_duplicate_registration_has_one_winner(self):
        # Arrange
        barrier = threading.Barrier(8)
        outcomes = []
        lock = threading.Lock()

        def register():
            barrier.wait()
            try:
                self.registry.register_singleton("shared", Config())
                result = "ok"
            except DuplicateNameError:
                result = "duplicate"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=register) for _ in range(8)]

        # Act
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Assert
        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == 7

    def test_concurrent_prototype_resolution(self):
        # Arrange
        config = Config()
        self.registry.register_singleton("config", config)
        self.registry.register_prototype("worker", Worker())

        # Act
        with ThreadPoolExecutor(max_workers=8) as executor:
            workers = list(executor.map(lambda _: self.registry.get_bean("worker"), range(100)))

        # Assert
        assert len({id(worker) for worker in workers}) == 100
        assert all(worker.config is config for worker in workers)

    def test_resolution_while_registering(self):
        # Arrange
        config = Config()
        self.registry.register_singleton("config", config)
        self.registry.register_prototype("worker", Worker())

        def resolve(_):
            return self.registry.get_bean("worker").config

        def register(i):
            self.registry.register_singleton(f"extra{i}", object())

        # Act
        with ThreadPoolExecutor(max_workers=8) as executor:
            resolved = [executor.submit(resolve, i) for i in range(50)]
            registered = [executor.submit(register, i) for i in range(50)]
            results = [future.result() for future in resolved]
            for future in registered:
                future.result()

        # Assert
        assert all(result is config for result in results)
        assert len(self.registry) == 52
