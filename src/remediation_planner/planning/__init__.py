"""
Execution planning for remediation modules.

This module turns normalized audit findings into an ordered, time-estimated
execution plan.
"""

from remediation_planner.planning.planner import (
    build_plan,
    log_plan,
    ExecutionPlanner,
    COUNT_RULES
)
from remediation_planner.planning.findings import (
    normalize_audit_results,
    normalize_finding
)

__all__ = [
    'build_plan',
    'log_plan',
    'ExecutionPlanner',
    'COUNT_RULES',
    'normalize_audit_results',
    'normalize_finding'
]
