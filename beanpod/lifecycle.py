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
Lifecycle engine running init and destroy hooks.

Hooks are plain methods discovered on the bean:

- ``set_bean_name(name)`` - name awareness
- ``init()`` - primary init hook
- ``post_construct()`` - runs only after ``init`` succeeded
- a custom init method (declared with ``@component(init_method=...)`` or found
  by conventional name)
- ``pre_destroy()``, ``destroy()`` and a custom destroy method, mirrored

A hook fails by raising.
"""

import threading
import time
from typing import Any, Callable, List, Optional, Protocol, Tuple, runtime_checkable

from nautilus_trader.common.component import Logger

from beanpod.config import LifecycleConfig
from beanpod.descriptors import describe
from beanpod.events import LifecycleStarted, LifecycleStarting, LifecycleStopped, LifecycleStopping
from beanpod.exceptions import LifecycleHookError
from beanpod.sinks import EventSink, emit


@runtime_checkable
class BeanNameAware(Protocol):
    def set_bean_name(self, name: str) -> None:
        ...


@runtime_checkable
class Initializer(Protocol):
    def init(self) -> None:
        ...


@runtime_checkable
class PostConstruct(Protocol):
    def post_construct(self) -> None:
        ...


@runtime_checkable
class PreDestroy(Protocol):
    def pre_destroy(self) -> None:
        ...


@runtime_checkable
class Destroyer(Protocol):
    def destroy(self) -> None:
        ...


class LifecycleEngine:
    """
    Drives beans through initialization and destruction.

    Keeps two ordered logs: `init_order` (a name is appended once its
    initialization fully succeeded) and `destroy_order` (a name is appended
    whenever its destruction was attempted, whatever the outcome). Contexts
    destroy in reverse registration order, so `destroy_order` mirrors
    `init_order`.

    Parameters
    ----------
    sink : EventSink, optional
        Receiver of lifecycle events
    config : LifecycleConfig, optional
        Conventional custom hook names
    """

    def __init__(
        self,
        sink: Optional[EventSink] = None,
        config: Optional[LifecycleConfig] = None,
    ) -> None:
        self._sink = sink
        self._config = config or LifecycleConfig()
        self._logger = Logger(self.__class__.__name__)
        self._lock = threading.Lock()
        self._init_order: List[str] = []
        self._destroy_order: List[str] = []

    def process_initialization(self, name: str, instance: Any) -> None:
        """
        Run the init hooks of a bean.

        Order: name awareness, ``init``, ``post_construct``, custom init
        method. The first failing hook stops the sequence.

        Raises
        ------
        LifecycleHookError
            Naming the bean and the failed phase. The bean is then not
            recorded in the init order.
        """
        aware = _hook(instance, "set_bean_name")
        if aware is not None:
            try:
                aware(name)
            except Exception as e:
                raise LifecycleHookError(name, "set_bean_name", e) from e

        for phase, method_name in self._init_steps(instance):
            self._run_hook(name, instance, phase, method_name, starting=True)

        with self._lock:
            self._init_order.append(name)

    def process_destruction(self, name: str, instance: Any) -> None:
        """
        Run the destroy hooks of a bean.

        Order: ``pre_destroy``, ``destroy``, custom destroy method. The
        first failing hook stops the sequence. The bean is recorded in the
        destroy order in every case, in order of attempt.

        Raises
        ------
        LifecycleHookError
            Naming the bean and the failed phase
        """
        try:
            for phase, method_name in self._destroy_steps(instance):
                self._run_hook(name, instance, phase, method_name, starting=False)
        finally:
            with self._lock:
                self._destroy_order.append(name)

    def get_init_order(self) -> List[str]:
        with self._lock:
            return list(self._init_order)

    def get_destroy_order(self) -> List[str]:
        with self._lock:
            return list(self._destroy_order)

    def reset(self) -> None:
        """Clear both order logs."""
        with self._lock:
            self._init_order = []
            self._destroy_order = []

    def _init_steps(self, instance: Any) -> List[Tuple[str, str]]:
        steps = [("init", "init"), ("post_construct", "post_construct")]
        custom = self._custom_method(
            instance,
            describe(type(instance)).init_method,
            self._config.init_method_names,
        )
        if custom:
            steps.append((f"init method '{custom}'", custom))
        return steps

    def _destroy_steps(self, instance: Any) -> List[Tuple[str, str]]:
        steps = [("pre_destroy", "pre_destroy"), ("destroy", "destroy")]
        custom = self._custom_method(
            instance,
            describe(type(instance)).destroy_method,
            self._config.destroy_method_names,
        )
        if custom:
            steps.append((f"destroy method '{custom}'", custom))
        return steps

    def _custom_method(
        self,
        instance: Any,
        declared: Optional[str],
        conventions: List[str],
    ) -> Optional[str]:
        if declared:
            if _hook(instance, declared) is None:
                self._logger.warning(
                    f"Declared hook '{declared}' not found on {type(instance).__name__}"
                )
                return None
            return declared

        for method_name in conventions:
            if _hook(instance, method_name) is not None:
                return method_name

        return None

    def _run_hook(
        self,
        name: str,
        instance: Any,
        phase: str,
        method_name: str,
        starting: bool,
    ) -> None:
        hook = _hook(instance, method_name)
        if hook is None:
            return

        component_type = type(instance).__qualname__
        before = LifecycleStarting if starting else LifecycleStopping
        after = LifecycleStarted if starting else LifecycleStopped

        emit(self._sink, before(
            component_id=name,
            component_type=component_type,
            method_name=method_name,
        ))

        start = time.perf_counter()
        try:
            hook()
        except Exception as e:
            emit(self._sink, after(
                component_id=name,
                component_type=component_type,
                method_name=method_name,
                duration=time.perf_counter() - start,
                error=repr(e),
            ))
            raise LifecycleHookError(name, phase, e) from e

        emit(self._sink, after(
            component_id=name,
            component_type=component_type,
            method_name=method_name,
            duration=time.perf_counter() - start,
        ))


def _hook(instance: Any, method_name: str) -> Optional[Callable[..., Any]]:
    method = getattr(instance, method_name, None)
    if callable(method):
        return method
    return None
