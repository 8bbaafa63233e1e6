"""
Failure handling for remediation runs.

Dependency graph queries, failure impact analysis, strategy resolution, and
the state machine and runner that apply them module by module.
"""

from remediation_planner.execution.graph import (
    DependencyGraph,
    build_graph,
    default_dependency_graph,
    graph_from_config
)
from remediation_planner.execution.impact import analyze_impact, classify_impact, FailureImpactAnalyzer
from remediation_planner.execution.strategy import resolve_strategy, FailureStrategyResolver
from remediation_planner.execution.state_machine import ExecutionStateMachine
from remediation_planner.execution.runner import ModuleRunner

__all__ = [
    'DependencyGraph',
    'build_graph',
    'default_dependency_graph',
    'graph_from_config',
    'analyze_impact',
    'classify_impact',
    'FailureImpactAnalyzer',
    'resolve_strategy',
    'FailureStrategyResolver',
    'ExecutionStateMachine',
    'ModuleRunner'
]
