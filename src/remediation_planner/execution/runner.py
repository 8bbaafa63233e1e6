"""Sequential module runner driving the execution state machine."""
import logging
import time
from typing import Callable, Dict, List, Mapping, Tuple

from remediation_planner.execution.graph import DependencyGraph
from remediation_planner.execution.state_machine import ExecutionStateMachine
from remediation_planner.utils.constants import FailureStrategy, OutcomeStatus
from remediation_planner.utils.exceptions import ConfigurationError, InvalidGraphError
from remediation_planner.utils.models import (
    ExecutionPlan, FailurePolicy, ModuleOutcome, PlannedModule, RunResult
)


logger = logging.getLogger(__name__)

# A remediation action receives its planned module and returns True on success
RemediationAction = Callable[[PlannedModule], bool]


def validate_plan_against_graph(plan: ExecutionPlan, graph: DependencyGraph) -> None:
    """Check that every module referenced by the plan is a graph node.

    Args:
        plan: Execution plan
        graph: Dependency graph used for failure analysis

    Raises:
        InvalidGraphError: If the plan names a module the graph does not know
    """
    missing = [name for name in plan.module_names if name not in graph]
    if missing:
        raise InvalidGraphError(
            f"Plan references module(s) missing from the dependency graph: {', '.join(missing)}"
        )


def find_order_violations(plan: ExecutionPlan, graph: DependencyGraph) -> List[Tuple[str, str]]:
    """Find required modules scheduled before a module they depend on.

    Priority overrides can order a dependent ahead of its dependency. If the
    dependency then fails, the dependent has already run but still lands in
    the skip list of the failure report.

    Args:
        plan: Execution plan
        graph: Dependency graph containing every plan module

    Returns:
        list: (dependent, dependency) pairs, direct or transitive, in plan order
    """
    names = [m.name for m in plan.required_modules]
    violations = []
    for index, dependency in enumerate(names):
        dependents = graph.transitive_dependents(dependency)
        for earlier in names[:index]:
            if earlier in dependents:
                violations.append((earlier, dependency))
    return violations


class ModuleRunner:
    """Run planned modules one after another, applying the failure policy."""

    def __init__(self, plan: ExecutionPlan, graph: DependencyGraph, policy: FailurePolicy,
                 actions: Mapping[str, RemediationAction], sleep: Callable[[float], None] = time.sleep):
        """Initialize the runner.

        Args:
            plan: Plan to execute
            graph: Dependency graph for failure impact analysis
            policy: Failure handling policy
            actions: Module name -> remediation callable
            sleep: Function used to wait between retries

        Raises:
            InvalidGraphError: If the plan references modules absent from the graph
            ConfigurationError: If a required module has no action
        """
        validate_plan_against_graph(plan, graph)
        for dependent, dependency in find_order_violations(plan, graph):
            logger.warning(
                "Plan runs %s before %s, which it depends on; it will already have run if %s fails",
                dependent, dependency, dependency
            )

        missing_actions = [m.name for m in plan.required_modules if m.name not in actions]
        if missing_actions:
            raise ConfigurationError(
                f"No remediation action registered for: {', '.join(missing_actions)}"
            )

        self.plan = plan
        self.graph = graph
        self.policy = policy
        self.actions = dict(actions)
        self.sleep = sleep
        self.state_machine = ExecutionStateMachine(graph, policy)

    def _invoke(self, module: PlannedModule, outcome: ModuleOutcome) -> bool:
        """Call the module's action once; exceptions count as failure."""
        outcome.attempts += 1
        try:
            succeeded = bool(self.actions[module.name](module))
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Module %s raised on attempt %s: %s", module.name, outcome.attempts, e, exc_info=True)
            outcome.error = str(e)
            return False

        if not succeeded:
            outcome.error = "Remediation action reported failure"
        return succeeded

    def _run_module(self, module: PlannedModule) -> ModuleOutcome:
        outcome = ModuleOutcome(name=module.name)
        logger.info("Running %s: %s", module.name, module.reason)

        while True:
            if self._invoke(module, outcome):
                outcome.status = OutcomeStatus.SUCCEEDED
                outcome.error = None
                self.state_machine.record_success(module.name)
                return outcome

            decision = self.state_machine.handle_failure(module.name)
            if decision.strategy != FailureStrategy.RETRY:
                outcome.status = OutcomeStatus.FAILED
                return outcome

            if self.policy.retry_delay_seconds > 0:
                logger.info("Retrying %s in %ss (attempt %s)",
                            module.name, self.policy.retry_delay_seconds, decision.next_attempt)
                self.sleep(self.policy.retry_delay_seconds)

    def run(self) -> RunResult:
        """Execute the plan.

        Returns:
            RunResult: Per-module outcomes and the failure report
        """
        outcomes: List[ModuleOutcome] = []
        logger.info("Starting run of %s module(s)", len(self.plan.required_modules))

        for module in self.plan.required_modules:
            if self.state_machine.should_abort:
                outcomes.append(ModuleOutcome(name=module.name, status=OutcomeStatus.NOT_RUN))
                continue

            if self.state_machine.is_skipped(module.name):
                logger.info("Skipping %s: a module it depends on failed", module.name)
                outcomes.append(ModuleOutcome(name=module.name, status=OutcomeStatus.SKIPPED))
                continue

            outcomes.append(self._run_module(module))

        if self.state_machine.should_abort:
            not_run = [o.name for o in outcomes if o.status == OutcomeStatus.NOT_RUN]
            logger.error("Run aborted; %s module(s) not run: %s", len(not_run), ', '.join(not_run) or '-')

        report = self.state_machine.complete()
        return RunResult(plan=self.plan, outcomes=outcomes, report=report)


def run_plan(plan: ExecutionPlan, graph: DependencyGraph, policy: FailurePolicy,
             actions: Dict[str, RemediationAction], sleep: Callable[[float], None] = time.sleep) -> RunResult:
    """Convenience wrapper: build a ModuleRunner and run it."""
    return ModuleRunner(plan, graph, policy, actions, sleep=sleep).run()
