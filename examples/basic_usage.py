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
Basic beanpod usage.

Shows:
- Declaring components and injection points
- Interface bindings and prototype beans
- Start/stop ordering
"""

from typing import Dict, Optional, Protocol

from beanpod import (
    ApplicationContext,
    ContextConfig,
    LoggingConfig,
    component,
    inject,
    repository,
    service,
)


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        ...


@component("notifier")
class ConsoleNotifier:
    def notify(self, message: str) -> None:
        print(f"  notify: {message}")


@repository("users")
class UserRepository:
    def __init__(self) -> None:
        self._users: Dict[int, str] = {}

    def init(self) -> None:
        self._users = {1: "alice", 2: "bob"}
        print("UserRepository initialized")

    def find(self, user_id: int) -> Optional[str]:
        return self._users.get(user_id)

    def destroy(self) -> None:
        print("UserRepository destroyed")


@component("request", scope="prototype")
class RequestContext:
    users: UserRepository = inject()


@service("orders")
class OrderService:
    users: UserRepository = inject("users")
    notifier: Notifier = inject()
    audit: Optional[Notifier] = inject("audit")

    def init(self) -> None:
        print("OrderService initializing")

    def post_construct(self) -> None:
        print("OrderService ready")

    def create_order(self, user_id: int) -> str:
        user = self.users.find(user_id)
        order = f"order for {user}"
        self.notifier.notify(order)
        return order

    def pre_destroy(self) -> None:
        print("OrderService shutting down")


def main() -> None:
    print("=== beanpod basic usage ===")

    config = ContextConfig(context_name="basic", logging=LoggingConfig(sink="none"))
    context = ApplicationContext(config)

    context.register_components(UserRepository(), OrderService())
    context.register_by_interface(Notifier, ConsoleNotifier(), "notifier")
    context.register_component(RequestContext())

    print(context.validate(partial=True).format_report())

    with context:
        orders = context.get_bean("orders")
        print(orders.create_order(1))

        first = context.get_bean("request")
        second = context.get_bean("request")
        print(f"prototype instances distinct: {first is not second}")
        print(f"prototype wired: {first.users is context.get_bean_by_type(UserRepository)}")

        print(f"init order: {context.init_order}")

    print(f"destroy order: {context.destroy_order}")


if __name__ == "__main__":
    main()
