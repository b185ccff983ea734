#!/usr/bin/env python3
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
Lifecycle event sinks.

Combines a console sink limited to injection and creation events with a
recording sink, then prints a summary of the recorded stream.
"""

import sys
from collections import Counter

from beanpod import (
    ApplicationContext,
    ConsoleEventSink,
    FilteredEventSink,
    MultiEventSink,
    RecordingEventSink,
    inject,
    service,
)
from beanpod.events import (
    ComponentCreated,
    ComponentDestroyed,
    DependencyInjected,
    DependencyInjectionFailed,
)


@service("user_service")
class UserService:
    def init(self) -> None:
        print("UserService initializing")

    def get_user(self, user_id: int) -> str:
        return f"user-{user_id}"

    def destroy(self) -> None:
        print("UserService destroying")


@service("order_service")
class OrderService:
    users: UserService = inject("user_service")
    payments = inject("payment_service")

    def create_order(self, user_id: int) -> str:
        return f"order for {self.users.get_user(user_id)}"


def main() -> None:
    print("=== beanpod event sinks ===")

    console = FilteredEventSink(
        ConsoleEventSink(sys.stdout),
        lambda event: isinstance(
            event,
            (DependencyInjected, DependencyInjectionFailed, ComponentCreated, ComponentDestroyed),
        ),
    )
    recording = RecordingEventSink()

    context = ApplicationContext(sink=MultiEventSink(console, recording))
    context.register_components(UserService(), OrderService())

    context.start()
    print(context.get_bean("order_service").create_order(7))
    errors = context.stop()

    print(f"destroy errors: {len(errors)}")
    print("recorded events:")
    for name, count in sorted(Counter(type(event).__name__ for event in recording.events).items()):
        print(f"  {name}: {count}")


if __name__ == "__main__":
    main()
