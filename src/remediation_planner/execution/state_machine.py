"""Execution state machine for failure handling across a run."""
import logging
from typing import Optional

from remediation_planner.execution.graph import DependencyGraph
from remediation_planner.execution.impact import analyze_impact
from remediation_planner.execution.strategy import resolve_strategy
from remediation_planner.utils.constants import FailureStrategy, ImpactLevel, RunStatus
from remediation_planner.utils.models import (
    ExecutionState, FailurePolicy, FailureReport, StrategyDecision
)


logger = logging.getLogger(__name__)


class ExecutionStateMachine:
    """Track failures, skips and retries for a single run.

    Not safe for concurrent use: one run, one state machine, one caller.
    """

    def __init__(self, graph: DependencyGraph, policy: FailurePolicy):
        """Initialize in the Running state with an empty ExecutionState.

        Args:
            graph: Validated dependency graph
            policy: Failure handling policy for the run
        """
        self.graph = graph
        self.policy = policy
        self.state = ExecutionState()
        self.status = RunStatus.RUNNING
        self._report: Optional[FailureReport] = None

    @property
    def should_abort(self) -> bool:
        return self.state.should_abort

    def current_attempt(self, module: str) -> int:
        """Attempt number the module is on (1 before any retry)."""
        return self.state.retry_attempts.get(module, 1)

    def is_skipped(self, module: str) -> bool:
        return module in self.state.skipped_modules

    def record_success(self, module: str) -> None:
        logger.info("Module %s completed (attempt %s)", module, self.current_attempt(module))

    def handle_failure(self, module: str, attempt: Optional[int] = None) -> StrategyDecision:
        """Apply the failure strategy for a failed module.

        Args:
            module: Module that failed
            attempt: Attempt number that failed. Defaults to the module's
                tracked retry count.

        Returns:
            StrategyDecision: The decision that was applied

        Raises:
            UnknownModuleError: If module is not in the dependency graph
        """
        if self.status != RunStatus.RUNNING:
            logger.warning(
                "Ignoring failure of %s: run is already %s", module, self.status.value.lower()
            )
            return StrategyDecision(
                strategy=FailureStrategy.ABORT,
                reason=f"Run already {self.status.value.lower()}; failure of {module} not recorded",
                abort=self.state.should_abort,
            )

        if attempt is None:
            attempt = self.current_attempt(module)

        impact = analyze_impact(self.graph, module)
        decision = resolve_strategy(impact, self.policy, attempt)

        self.state.failed_modules.append(module)
        self.state.last_failure_impact = impact
        self.state.last_failure_strategy = decision

        if decision.strategy == FailureStrategy.SKIP_DEPENDENTS:
            # Overlapping skip sets from separate failures are kept as-is
            self.state.skipped_modules.extend(decision.skip_modules)
        elif decision.strategy == FailureStrategy.RETRY:
            self.state.retry_attempts[module] = decision.next_attempt
        elif decision.strategy == FailureStrategy.ABORT:
            self.state.should_abort = True
            self.status = RunStatus.ABORTED

        logger.warning(
            "Module %s failed on attempt %s (impact: %s): %s - %s",
            module, attempt, impact.impact_level.value, decision.strategy.value, decision.reason
        )
        return decision

    def complete(self) -> FailureReport:
        """Finish the run and build the failure report.

        Safe to call more than once; the first report is returned again.

        Returns:
            FailureReport: Summary of failures, skips and retries
        """
        if self._report is not None:
            return self._report

        state = self.state
        last_impact = state.last_failure_impact
        self._report = FailureReport(
            total_failures=len(state.failed_modules),
            total_skipped=len(state.skipped_modules),
            total_retries=sum(attempts - 1 for attempts in state.retry_attempts.values()),
            failed_modules=tuple(state.failed_modules),
            skipped_modules=tuple(state.skipped_modules),
            aborted=state.should_abort,
            last_impact_level=last_impact.impact_level if last_impact else ImpactLevel.NONE,
        )
        self.status = RunStatus.COMPLETED

        logger.info(
            "Run completed: failures=%s, skipped=%s, retries=%s, aborted=%s",
            self._report.total_failures, self._report.total_skipped,
            self._report.total_retries, self._report.aborted
        )
        return self._report
