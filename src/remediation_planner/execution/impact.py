"""Failure impact analysis over the module dependency graph."""

import logging
from remediation_planner.execution.graph import DependencyGraph
from remediation_planner.utils.constants import ImpactLevel
from remediation_planner.utils.models import FailureImpact


logger = logging.getLogger(__name__)

# Upper bounds (inclusive) on affected module count for each level
LOW_IMPACT_MAX = 2
MEDIUM_IMPACT_MAX = 4


def classify_impact(affected_count: int) -> ImpactLevel:
    """Map a number of affected modules to an impact level.

    0 -> None, 1-2 -> Low, 3-4 -> Medium, 5+ -> High.
    """
    if affected_count <= 0:
        return ImpactLevel.NONE
    if affected_count <= LOW_IMPACT_MAX:
        return ImpactLevel.LOW
    if affected_count <= MEDIUM_IMPACT_MAX:
        return ImpactLevel.MEDIUM
    return ImpactLevel.HIGH


def analyze_impact(graph: DependencyGraph, failed_module: str) -> FailureImpact:
    """Compute the blast radius of a module failure.

    A module that is both a direct dependent and reachable through another
    direct dependent counts as direct only.

    Args:
        graph: Validated dependency graph
        failed_module: Module that failed

    Returns:
        FailureImpact: Direct and transitive dependents plus impact level

    Raises:
        UnknownModuleError: If failed_module is not in the graph
    """
    direct = set(graph.direct_dependents(failed_module))

    transitive = set()
    for dependent in direct:
        transitive |= graph.transitive_dependents(dependent)
    transitive -= direct
    transitive.discard(failed_module)

    level = classify_impact(len(direct) + len(transitive))
    logger.debug(
        "Impact of %s: %s direct, %s transitive -> %s",
        failed_module, len(direct), len(transitive), level.value
    )

    return FailureImpact(
        failed_module=failed_module,
        direct_dependents=frozenset(direct),
        transitive_dependents=frozenset(transitive),
        impact_level=level,
    )


class FailureImpactAnalyzer:
    """Impact analysis bound to a single dependency graph."""

    def __init__(self, graph: DependencyGraph):
        self.graph = graph

    def analyze(self, failed_module: str) -> FailureImpact:
        return analyze_impact(self.graph, failed_module)
