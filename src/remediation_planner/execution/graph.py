"""Module dependency graph.

Nodes are module names; an edge ``A -> B`` means "A depends on B". The graph
is validated on construction (unknown references, self-loops and cycles are
rejected) and is read-only afterwards.
"""

import logging
from collections import deque
from typing import Dict, Iterable, List, Mapping, Set

from remediation_planner.utils.constants import DEFAULT_DEPENDENCIES, MODULE_CATALOG
from remediation_planner.utils.exceptions import InvalidGraphError, UnknownModuleError


logger = logging.getLogger(__name__)


class DependencyGraph:
    """Directed acyclic graph of remediation modules."""

    def __init__(self, nodes: Iterable[str], edges: Mapping[str, Iterable[str]] = None):
        """Build and validate the graph.

        Args:
            nodes: Module names
            edges: Module name -> names of the modules it depends on.
                Nodes without an entry have no prerequisites.

        Raises:
            InvalidGraphError: If an edge references an unknown node, a node
                depends on itself, or the edges contain a cycle
        """
        self._nodes = frozenset(nodes)
        edges = edges or {}

        depends_on: Dict[str, frozenset] = {}
        for name, deps in edges.items():
            if name not in self._nodes:
                raise InvalidGraphError(f"Dependency entry for unknown module '{name}'")
            deps = frozenset(deps)
            missing = sorted(deps - self._nodes)
            if missing:
                raise InvalidGraphError(
                    f"Module '{name}' depends on unknown module(s): {', '.join(missing)}"
                )
            if name in deps:
                raise InvalidGraphError(f"Module '{name}' depends on itself")
            depends_on[name] = deps
        for name in self._nodes:
            depends_on.setdefault(name, frozenset())
        self._depends_on = depends_on

        # Reverse index: module -> modules that depend on it
        dependents: Dict[str, Set[str]] = {name: set() for name in self._nodes}
        for name, deps in depends_on.items():
            for dep in deps:
                dependents[dep].add(name)
        self._dependents = {name: frozenset(found) for name, found in dependents.items()}

        self._check_acyclic()
        logger.debug("Dependency graph built with %s modules", len(self._nodes))

    def _check_acyclic(self) -> None:
        """Reject cycles using Kahn's algorithm."""
        remaining = {name: len(deps) for name, deps in self._depends_on.items()}
        queue = deque(sorted(name for name, count in remaining.items() if count == 0))
        visited = 0

        while queue:
            node = queue.popleft()
            visited += 1
            for dependent in sorted(self._dependents[node]):
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    queue.append(dependent)

        if visited != len(self._nodes):
            on_cycle = sorted(name for name, count in remaining.items() if count > 0)
            raise InvalidGraphError(f"Dependency cycle detected involving: {', '.join(on_cycle)}")

    def _require(self, name: str) -> None:
        if name not in self._nodes:
            raise UnknownModuleError(name)

    @property
    def nodes(self) -> frozenset:
        return self._nodes

    def __contains__(self, name) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def dependencies(self, name: str) -> frozenset:
        """Modules that ``name`` depends on."""
        self._require(name)
        return self._depends_on[name]

    def direct_dependents(self, name: str) -> frozenset:
        """Modules whose dependency set contains ``name``."""
        self._require(name)
        return self._dependents[name]

    def transitive_dependents(self, name: str) -> Set[str]:
        """All modules reachable from ``name`` through the dependents relation.

        Breadth-first over an explicit queue. The visited set also guards
        against cycles, although construction already rejects them. The
        start node is never part of the result.

        Args:
            name: Module name

        Returns:
            set: Every direct and indirect dependent of ``name``

        Raises:
            UnknownModuleError: If ``name`` is not a node
        """
        self._require(name)
        visited = {name}
        found: Set[str] = set()
        queue = deque([name])

        while queue:
            current = queue.popleft()
            for dependent in self._dependents[current]:
                if dependent in visited:
                    continue
                visited.add(dependent)
                found.add(dependent)
                queue.append(dependent)

        return found

    def to_dict(self) -> Dict[str, List[str]]:
        """Dependency edges as plain lists, sorted for stable output."""
        return {name: sorted(self._depends_on[name]) for name in sorted(self._nodes)}


def build_graph(nodes: Iterable[str], edges: Mapping[str, Iterable[str]]) -> DependencyGraph:
    """Build a validated dependency graph.

    Args:
        nodes: Module names
        edges: Module name -> names it depends on

    Returns:
        DependencyGraph

    Raises:
        InvalidGraphError: If the graph is invalid
    """
    return DependencyGraph(nodes, edges)


def default_dependency_graph() -> DependencyGraph:
    """Graph over the seven-module catalog with the default edges."""
    return DependencyGraph(MODULE_CATALOG, DEFAULT_DEPENDENCIES)


def graph_from_config(config) -> DependencyGraph:
    """Build the dependency graph from the ``modules.dependencies`` section.

    The node set is always the module catalog, so a plan built from findings
    can always be analysed against the graph.

    Args:
        config: Configuration dictionary

    Returns:
        DependencyGraph

    Raises:
        ConfigurationError: If the section has the wrong shape
        InvalidGraphError: If the edges are invalid
    """
    from remediation_planner.utils.config import get_dependencies

    return DependencyGraph(MODULE_CATALOG, get_dependencies(config))
