"""Domain models for planning and failure handling."""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .constants import (
    Category, FailureStrategy, ImpactLevel, OutcomeStatus,
    DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_SECONDS
)
from .exceptions import InvalidPolicyError


@dataclass(frozen=True)
class AuditFinding:
    """Normalized result of one audit category.

    Attributes:
        category: Audit category
        item_count: Number of detected items (non-negative)
        score_percent: Security score 0-100, only meaningful for Security
    """
    category: Category
    item_count: int = 0
    score_percent: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category.value,
            'item_count': self.item_count,
            'score_percent': self.score_percent,
        }


@dataclass(frozen=True)
class PlannedModule:
    """A remediation module selected to run.

    Attributes:
        name: Module name, matches a dependency graph node
        reason: Human-readable justification
        priority: Ordering key, 1 is highest
        item_count: Items the module will act on
        estimated_duration_seconds: Rough runtime estimate
        category: Audit category that triggered the module
    """
    name: str
    reason: str
    priority: int
    item_count: int
    estimated_duration_seconds: int
    category: Category

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'reason': self.reason,
            'priority': self.priority,
            'item_count': self.item_count,
            'estimated_duration_seconds': self.estimated_duration_seconds,
            'category': self.category.value,
        }


@dataclass(frozen=True)
class SkippedModule:
    """A remediation module with nothing to do."""
    name: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'reason': self.reason}


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered set of modules to run this session plus the skip list.

    Attributes:
        required_modules: Planned modules sorted ascending by priority
        skipped_modules: Modules with nothing to do
    """
    required_modules: Tuple[PlannedModule, ...] = ()
    skipped_modules: Tuple[SkippedModule, ...] = ()

    @property
    def total_items_detected(self) -> int:
        return sum(m.item_count for m in self.required_modules)

    @property
    def total_estimated_seconds(self) -> int:
        return sum(m.estimated_duration_seconds for m in self.required_modules)

    @property
    def module_names(self) -> List[str]:
        """Names of every module in the plan, required first."""
        return [m.name for m in self.required_modules] + [m.name for m in self.skipped_modules]

    def is_required(self, name: str) -> bool:
        return any(m.name == name for m in self.required_modules)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'required_modules': [m.to_dict() for m in self.required_modules],
            'skipped_modules': [m.to_dict() for m in self.skipped_modules],
            'total_items_detected': self.total_items_detected,
            'total_estimated_seconds': self.total_estimated_seconds,
        }


@dataclass(frozen=True)
class FailureImpact:
    """Blast radius of a module failure.

    Attributes:
        failed_module: Module that failed
        direct_dependents: Modules that depend directly on the failed one
        transitive_dependents: Modules reachable through the direct
            dependents, excluding the direct dependents themselves
        impact_level: Severity bucket from the total dependent count
    """
    failed_module: str
    direct_dependents: FrozenSet[str] = frozenset()
    transitive_dependents: FrozenSet[str] = frozenset()
    impact_level: ImpactLevel = ImpactLevel.NONE

    @property
    def affected_count(self) -> int:
        return len(self.direct_dependents) + len(self.transitive_dependents)

    @property
    def all_dependents(self) -> List[str]:
        """Direct dependents then transitive ones, each group sorted."""
        return sorted(self.direct_dependents) + sorted(self.transitive_dependents)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'failed_module': self.failed_module,
            'direct_dependents': sorted(self.direct_dependents),
            'transitive_dependents': sorted(self.transitive_dependents),
            'impact_level': self.impact_level.value,
        }


@dataclass(frozen=True)
class FailurePolicy:
    """How failures are handled during a run.

    Attributes:
        max_retries: Retries allowed per module before escalating
        abort_on_critical_failure: Abort when a critical module fails or
            impact is High
        continue_on_non_critical_failure: Skip dependents instead of
            aborting on other failures
        critical_modules: Module names whose failure aborts the run
        retry_delay_seconds: Pause before a retry, used by the runner only
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    abort_on_critical_failure: bool = True
    continue_on_non_critical_failure: bool = True
    critical_modules: FrozenSet[str] = frozenset()
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS

    def __post_init__(self):
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise InvalidPolicyError(f"max_retries must be an integer, got {self.max_retries!r}")
        if self.max_retries < 0:
            raise InvalidPolicyError(f"max_retries must be >= 0, got {self.max_retries}")
        if isinstance(self.retry_delay_seconds, bool) or not isinstance(self.retry_delay_seconds, (int, float)):
            raise InvalidPolicyError(
                f"retry_delay_seconds must be a number, got {self.retry_delay_seconds!r}"
            )
        if self.retry_delay_seconds < 0:
            raise InvalidPolicyError(f"retry_delay_seconds must be >= 0, got {self.retry_delay_seconds}")
        critical = self.critical_modules
        if not isinstance(critical, (list, tuple, set, frozenset)):
            raise InvalidPolicyError(
                f"critical_modules must be a collection of module names, got {critical!r}"
            )
        object.__setattr__(self, 'critical_modules', frozenset(critical))

    def is_critical(self, module_name: str) -> bool:
        return module_name in self.critical_modules

    def to_dict(self) -> Dict[str, Any]:
        return {
            'max_retries': self.max_retries,
            'abort_on_critical_failure': self.abort_on_critical_failure,
            'continue_on_non_critical_failure': self.continue_on_non_critical_failure,
            'critical_modules': sorted(self.critical_modules),
            'retry_delay_seconds': self.retry_delay_seconds,
        }


@dataclass(frozen=True)
class StrategyDecision:
    """Outcome of resolving a failure strategy.

    Attributes:
        strategy: Chosen strategy
        reason: Which rule fired, for the audit trail
        skip_modules: Modules to skip (SkipDependents only)
        retry_module: Module to retry (Retry only)
        abort: Whether the run must stop
        next_attempt: Attempt number for the retry (Retry only)
    """
    strategy: FailureStrategy
    reason: str
    skip_modules: Tuple[str, ...] = ()
    retry_module: Optional[str] = None
    abort: bool = False
    next_attempt: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy': self.strategy.value,
            'reason': self.reason,
            'skip_modules': list(self.skip_modules),
            'retry_module': self.retry_module,
            'abort': self.abort,
            'next_attempt': self.next_attempt,
        }


@dataclass
class ExecutionState:
    """Mutable run-scoped record of failures, skips and retry counters."""
    failed_modules: List[str] = field(default_factory=list)
    skipped_modules: List[str] = field(default_factory=list)
    retry_attempts: Dict[str, int] = field(default_factory=dict)
    should_abort: bool = False
    last_failure_impact: Optional[FailureImpact] = None
    last_failure_strategy: Optional[StrategyDecision] = None


@dataclass(frozen=True)
class FailureReport:
    """Final summary of failure handling for a run."""
    total_failures: int
    total_skipped: int
    total_retries: int
    failed_modules: Tuple[str, ...]
    skipped_modules: Tuple[str, ...]
    aborted: bool
    last_impact_level: ImpactLevel = ImpactLevel.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_failures': self.total_failures,
            'total_skipped': self.total_skipped,
            'total_retries': self.total_retries,
            'failed_modules': list(self.failed_modules),
            'skipped_modules': list(self.skipped_modules),
            'aborted': self.aborted,
            'last_impact_level': self.last_impact_level.value,
        }


@dataclass
class ModuleOutcome:
    """Result of running one planned module.

    Attributes:
        name: Module name
        status: Final status of the module
        attempts: Number of times the action was invoked
        error: Last error message, if any
    """
    name: str
    status: OutcomeStatus = OutcomeStatus.NOT_RUN
    attempts: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'status': self.status.value,
            'attempts': self.attempts,
            'error': self.error,
        }


@dataclass
class RunResult:
    """Aggregate result of a runner pass."""
    plan: ExecutionPlan
    outcomes: List[ModuleOutcome]
    report: FailureReport

    def outcomes_by_status(self, status: OutcomeStatus) -> List[str]:
        return [o.name for o in self.outcomes if o.status == status]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'plan': self.plan.to_dict(),
            'outcomes': [o.to_dict() for o in self.outcomes],
            'report': self.report.to_dict(),
        }
