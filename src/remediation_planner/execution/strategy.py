"""
Failure strategy resolution.

Rules are evaluated in a fixed order and the first match wins. Retry always
comes first, so a module with retries left is retried even if it is critical
or its failure has a High impact.
"""

from remediation_planner.utils.constants import FailureStrategy, ImpactLevel
from remediation_planner.utils.models import FailureImpact, FailurePolicy, StrategyDecision


def resolve_strategy(impact: FailureImpact, policy: FailurePolicy,
                     current_attempt: int) -> StrategyDecision:
    """
    Decide what to do after a module failure.

    Args:
        impact: Impact of the failure
        policy: Failure handling policy for the run
        current_attempt: Attempt number that just failed (1 for the first run)

    Returns:
        StrategyDecision: Chosen strategy with the reason for the audit trail
    """
    module = impact.failed_module

    if current_attempt <= policy.max_retries:
        next_attempt = current_attempt + 1
        return StrategyDecision(
            strategy=FailureStrategy.RETRY,
            reason=(
                f"Attempt {current_attempt} of {module} failed; "
                f"retrying (max retries: {policy.max_retries})"
            ),
            retry_module=module,
            next_attempt=next_attempt,
        )

    if policy.is_critical(module) and policy.abort_on_critical_failure:
        return StrategyDecision(
            strategy=FailureStrategy.ABORT,
            reason=f"Critical module {module} failed after {current_attempt} attempt(s); aborting run",
            abort=True,
        )

    if impact.impact_level == ImpactLevel.HIGH and policy.abort_on_critical_failure:
        return StrategyDecision(
            strategy=FailureStrategy.ABORT,
            reason=(
                f"Failure of {module} has High impact "
                f"({impact.affected_count} dependent modules); aborting run"
            ),
            abort=True,
        )

    if policy.continue_on_non_critical_failure:
        skip_modules = tuple(impact.all_dependents)
        if skip_modules:
            reason = f"Non-critical failure of {module}; skipping {len(skip_modules)} dependent module(s)"
        else:
            reason = f"Non-critical failure of {module}; no dependent modules to skip"
        return StrategyDecision(
            strategy=FailureStrategy.SKIP_DEPENDENTS,
            reason=reason,
            skip_modules=skip_modules,
        )

    return StrategyDecision(
        strategy=FailureStrategy.ABORT,
        reason=f"Module {module} failed and policy does not continue on failure; aborting run",
        abort=True,
    )


class FailureStrategyResolver:
    """Strategy resolution bound to one failure policy."""

    def __init__(self, policy: FailurePolicy):
        self.policy = policy

    def resolve(self, impact: FailureImpact, current_attempt: int) -> StrategyDecision:
        return resolve_strategy(impact, self.policy, current_attempt)
