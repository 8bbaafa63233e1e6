"""
Module for turning audit findings into an execution plan.

Each category has a fixed decision rule. A category whose finding is missing
or malformed is planned as if nothing was detected, so one broken audit
never blocks the whole plan.
"""

import logging
import math
from typing import Dict, Mapping, Optional

from remediation_planner.utils.constants import (
    CATEGORY_MODULES, DEFAULT_PRIORITIES, SECURITY_ENHANCEMENT_DURATION_SECONDS,
    SECURITY_SCORE_THRESHOLD, SKIP_REASONS, Category
)
from remediation_planner.utils.models import AuditFinding, ExecutionPlan, PlannedModule, SkippedModule


# Count-based rules: module -> (reason template, minimum seconds, seconds per item)
COUNT_RULES = {
    'BloatwareRemoval': ("{count} bloatware item(s) detected", 10, 3),
    'EssentialApps': ("{count} missing essential app(s)", 30, 15),
    'SystemOptimization': ("{count} optimization(s) available", 15, 5),
    'TelemetryDisable': ("{count} active telemetry service(s)", 10, 2),
    'WindowsUpdates': ("{count} pending update(s)", 60, 30),
    'AppUpgrade': ("{count} app upgrade(s) available", 20, 10),
}


def _coerce_count(value) -> int:
    """Convert an item count to a non-negative int, 0 when unusable."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)


def _coerce_score(value) -> Optional[float]:
    """Convert a security score to 0-100, None when unusable."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score):
        return None
    return min(max(score, 0.0), 100.0)


def _format_score(score: float) -> str:
    if float(score).is_integer():
        return str(int(score))
    return f"{round(score, 1)}"


def _lookup_finding(findings: Mapping, category: Category) -> Optional[AuditFinding]:
    """Find the finding for a category, keyed by enum member or its value."""
    if not isinstance(findings, Mapping) or not findings:
        return None
    finding = findings.get(category)
    if finding is None:
        finding = findings.get(category.value)
    if not isinstance(finding, AuditFinding):
        return None
    return finding


def plan_count_module(module_name: str, finding: Optional[AuditFinding], priority: int, category: Category):
    """
    Apply a count-based rule to one module.

    Args:
        module_name: Module name with an entry in COUNT_RULES
        finding: Finding for the module's category, may be None
        priority: Effective priority for the module
        category: Category that feeds the module

    Returns:
        PlannedModule or SkippedModule
    """
    count = _coerce_count(finding.item_count) if finding else 0
    if count <= 0:
        return SkippedModule(name=module_name, reason=SKIP_REASONS[module_name])

    reason_template, minimum_seconds, seconds_per_item = COUNT_RULES[module_name]
    return PlannedModule(
        name=module_name,
        reason=reason_template.format(count=count),
        priority=priority,
        item_count=count,
        estimated_duration_seconds=max(minimum_seconds, count * seconds_per_item),
        category=category,
    )


def plan_security_module(finding: Optional[AuditFinding], priority: int):
    """
    Apply the score-based security rule.

    A missing or unusable score is treated as meeting the threshold.

    Args:
        finding: Security finding, may be None
        priority: Effective priority for SecurityEnhancement

    Returns:
        PlannedModule or SkippedModule
    """
    module_name = CATEGORY_MODULES[Category.SECURITY]
    score = _coerce_score(finding.score_percent) if finding else None
    if score is None or score >= SECURITY_SCORE_THRESHOLD:
        return SkippedModule(name=module_name, reason=SKIP_REASONS[module_name])

    # Failed check count when the audit reports one, otherwise a single pass
    failed_checks = _coerce_count(finding.item_count)
    return PlannedModule(
        name=module_name,
        reason=f"Security score: {_format_score(score)}% (below {SECURITY_SCORE_THRESHOLD}% threshold)",
        priority=priority,
        item_count=failed_checks if failed_checks > 0 else 1,
        estimated_duration_seconds=SECURITY_ENHANCEMENT_DURATION_SECONDS,
        category=Category.SECURITY,
    )


def build_plan(findings: Mapping, priorities: Optional[Mapping[str, int]] = None) -> ExecutionPlan:
    """
    Build an execution plan from audit findings.

    Args:
        findings: Category (enum or value string) -> AuditFinding
        priorities: Optional module name -> priority overrides. Modules not
            listed keep their default priority.

    Returns:
        ExecutionPlan: Required modules sorted by priority (catalog order
        breaks ties) and the skipped modules in catalog order
    """
    effective_priorities: Dict[str, int] = dict(DEFAULT_PRIORITIES)
    if priorities:
        for name, value in priorities.items():
            if name in effective_priorities and not isinstance(value, bool) and isinstance(value, int):
                effective_priorities[name] = value

    required = []
    skipped = []

    for category, module_name in CATEGORY_MODULES.items():
        finding = _lookup_finding(findings, category)
        priority = effective_priorities[module_name]

        if category == Category.SECURITY:
            result = plan_security_module(finding, priority)
        else:
            result = plan_count_module(module_name, finding, priority, category)

        if isinstance(result, PlannedModule):
            required.append(result)
        else:
            skipped.append(result)

    # sorted() is stable, so equal priorities keep catalog order
    required = sorted(required, key=lambda module: module.priority)

    return ExecutionPlan(required_modules=tuple(required), skipped_modules=tuple(skipped))


def log_plan(plan: ExecutionPlan) -> None:
    """
    Log one line per planning decision plus the plan totals.

    Kept separate from build_plan so planning itself stays free of I/O.

    Args:
        plan: Plan to log
    """
    for module in plan.required_modules:
        logging.info(
            "Module %s: REQUIRED (priority %s) - %s (~%ss)",
            module.name, module.priority, module.reason, module.estimated_duration_seconds
        )
    for module in plan.skipped_modules:
        logging.info("Module %s: SKIPPED - %s", module.name, module.reason)
    logging.info(
        "Execution plan: %s required, %s skipped, %s item(s), ~%ss",
        len(plan.required_modules), len(plan.skipped_modules),
        plan.total_items_detected, plan.total_estimated_seconds
    )


class ExecutionPlanner:
    """Plan builder bound to a priority table."""

    def __init__(self, priorities: Optional[Mapping[str, int]] = None):
        self.priorities = dict(priorities) if priorities else dict(DEFAULT_PRIORITIES)

    def build(self, findings: Mapping) -> ExecutionPlan:
        return build_plan(findings, self.priorities)
