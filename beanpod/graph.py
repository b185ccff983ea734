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
Dependency graph construction and validation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from nautilus_trader.common.component import Logger

from beanpod.descriptors import Binding, FieldSpec
from beanpod.registry import BeanRecord, BeanRegistry, satisfies


@dataclass
class ValidationIssue:
    """Represents an issue found during dependency graph validation."""

    severity: str  # "error", "warning", "info"
    bean: str
    message: str
    suggestion: Optional[str] = None
    dependency_chain: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Result of dependency graph validation."""

    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    beans_validated: int = 0

    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    def has_warnings(self) -> bool:
        return any(issue.severity == "warning" for issue in self.issues)

    def get_errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    def get_warnings(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    def format_report(self) -> str:
        """Format a human-readable validation report."""
        lines = [
            "Dependency Graph Validation Report",
            "==================================",
            f"Beans validated: {self.beans_validated}",
            f"Overall status: {'PASS' if self.is_valid else 'FAIL'}",
            "",
        ]

        for title, issues in (("ERRORS:", self.get_errors()), ("WARNINGS:", self.get_warnings())):
            if not issues:
                continue
            lines.append(title)
            for issue in issues:
                lines.append(f"  - {issue.bean}: {issue.message}")
                if issue.suggestion:
                    lines.append(f"    Suggestion: {issue.suggestion}")
            lines.append("")

        return "\n".join(lines)


class DependencyGraphValidator:
    """
    Validates the dependency graph of a registry without creating anything.

    Detects:
    - By-name dependencies on unregistered beans
    - By-type dependencies on unbound types
    - Dependencies whose bean is not assignable to the declared type
    - Cycles among prototype beans (which would recurse forever) and cycles
      through singletons (reported for information only)
    """

    def __init__(self) -> None:
        self._logger = Logger(self.__class__.__name__)

    def build_graph(self, registry: BeanRegistry) -> Dict[str, List[str]]:
        """
        Build the dependency graph of the registry.

        Returns
        -------
        Dict[str, List[str]]
            Bean name -> names of the beans it depends on, unresolved
            dependencies left out
        """
        records = {record.name: record for record in registry.records()}
        bindings = registry.type_bindings()

        graph: Dict[str, List[str]] = {}
        for name, record in records.items():
            targets = []
            for spec in record.descriptor.inject_fields:
                target = self._target_name(spec, records, bindings)
                if target is not None:
                    targets.append(target)
            graph[name] = targets

        return graph

    def validate(self, registry: BeanRegistry, partial: bool = False) -> ValidationResult:
        """
        Validate the dependency graph.

        Parameters
        ----------
        registry : BeanRegistry
            Registry to validate
        partial : bool
            If True, missing required dependencies are warnings instead of errors

        Returns
        -------
        ValidationResult
            Validation result with issues and statistics
        """
        records = {record.name: record for record in registry.records()}
        bindings = registry.type_bindings()
        issues: List[ValidationIssue] = []

        for name, record in records.items():
            for spec in record.descriptor.inject_fields:
                self._validate_field(name, spec, records, bindings, partial, issues)

        graph = self.build_graph(registry)
        self._check_cycles(graph, records, issues)

        result = ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            beans_validated=len(records),
        )

        self._logger.debug(
            f"Validation complete: {len(records)} beans, "
            f"{len(result.get_errors())} errors, "
            f"{len(result.get_warnings())} warnings"
        )

        return result

    def _target_name(
        self,
        spec: FieldSpec,
        records: Dict[str, BeanRecord],
        bindings: Dict[Any, str],
    ) -> Optional[str]:
        if spec.binding == Binding.BY_NAME:
            return spec.bean_name if spec.bean_name in records else None
        return bindings.get(spec.target_type)

    def _validate_field(
        self,
        name: str,
        spec: FieldSpec,
        records: Dict[str, BeanRecord],
        bindings: Dict[Any, str],
        partial: bool,
        issues: List[ValidationIssue],
    ) -> None:
        target = self._target_name(spec, records, bindings)

        if target is None:
            if spec.optional:
                severity = "info"
            else:
                severity = "warning" if partial else "error"

            if spec.binding == Binding.BY_NAME:
                message = f"Field '{spec.field_name}' depends on unregistered bean '{spec.bean_name}'"
                suggestion = f"Register a bean named '{spec.bean_name}'"
            else:
                type_name = getattr(spec.target_type, "__name__", repr(spec.target_type))
                message = f"Field '{spec.field_name}' depends on unbound type {type_name}"
                suggestion = "Register an instance of the type or bind one with register_by_interface"

            issues.append(ValidationIssue(
                severity=severity,
                bean=name,
                message=message,
                suggestion=suggestion,
            ))
            return

        if spec.target_type is not None and not satisfies(records[target].instance, spec.target_type):
            issues.append(ValidationIssue(
                severity="warning",
                bean=name,
                message=(
                    f"Field '{spec.field_name}' expects "
                    f"{getattr(spec.target_type, '__name__', spec.target_type)} but bean "
                    f"'{target}' is a {records[target].declared_type.__name__}"
                ),
                suggestion="Fix the bean name or the field annotation",
                dependency_chain=[name, target],
            ))

    def _check_cycles(
        self,
        graph: Dict[str, List[str]],
        records: Dict[str, BeanRecord],
        issues: List[ValidationIssue],
    ) -> None:
        reported: Set[frozenset] = set()

        for cycle in _find_cycles(graph):
            key = frozenset(cycle)
            if key in reported:
                continue
            reported.add(key)

            chain = cycle + [cycle[0]]
            if all(not records[name].is_singleton for name in cycle):
                issues.append(ValidationIssue(
                    severity="error",
                    bean=cycle[0],
                    message=f"Circular dependency between prototypes: {' -> '.join(chain)}",
                    suggestion="Make one bean in the cycle a singleton or break the cycle",
                    dependency_chain=chain,
                ))
            else:
                issues.append(ValidationIssue(
                    severity="info",
                    bean=cycle[0],
                    message=f"Circular reference through singletons: {' -> '.join(chain)}",
                    dependency_chain=chain,
                ))


def _find_cycles(graph: Dict[str, List[str]]) -> List[List[str]]:
    cycles: List[List[str]] = []
    visited: Set[str] = set()

    def visit(node: str, path: List[str], on_path: Set[str]) -> None:
        path.append(node)
        on_path.add(node)
        for target in graph.get(node, []):
            if target in on_path:
                cycles.append(path[path.index(target):])
            elif target not in visited:
                visit(target, path, on_path)
        on_path.discard(node)
        path.pop()
        visited.add(node)

    for node in graph:
        if node not in visited:
            visit(node, [], set())

    return cycles
