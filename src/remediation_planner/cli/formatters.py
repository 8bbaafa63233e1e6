"""Formatters for displaying plans, run results and dependency impact."""
from rich.table import Table
from remediation_planner.utils.constants import ImpactLevel, OutcomeStatus, Style
from remediation_planner.utils.models import ExecutionPlan, FailureImpact, FailureReport, RunResult


IMPACT_STYLES = {
    ImpactLevel.NONE: Style.DIM,
    ImpactLevel.LOW: Style.GREEN,
    ImpactLevel.MEDIUM: Style.YELLOW,
    ImpactLevel.HIGH: Style.RED,
}


def format_duration(seconds: int) -> str:
    """Format seconds as a short human-readable duration.

    Args:
        seconds: Duration in seconds

    Returns:
        String such as '45s', '2m 30s' or '1h 5m'
    """
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    minutes, secs = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m" if minutes else f"{hours}h"


def format_impact_cell(level: ImpactLevel) -> str:
    style = IMPACT_STYLES.get(level, Style.DIM)
    return f"[{style}]{level.value}[/{style}]"


def format_outcome_cell(status: OutcomeStatus) -> str:
    """Format an outcome status with Rich markup."""
    if status == OutcomeStatus.SUCCEEDED:
        return f"[{Style.GREEN}]✓ SUCCEEDED[/{Style.GREEN}]"
    elif status == OutcomeStatus.FAILED:
        return f"[{Style.RED}]✗ FAILED[/{Style.RED}]"
    elif status == OutcomeStatus.SKIPPED:
        return f"[{Style.YELLOW}]SKIPPED[/{Style.YELLOW}]"
    else:
        return f"[{Style.DIM}]NOT RUN[/{Style.DIM}]"


def print_plan_table(plan: ExecutionPlan, ctx):
    """Print the required and skipped modules of a plan.

    Args:
        plan: Execution plan
        ctx: CLI context
    """
    table = Table(title="Execution Plan", show_lines=False)
    table.add_column("#", justify="right", style=Style.DIM)
    table.add_column("Module", style=Style.BOLD)
    table.add_column("Reason")
    table.add_column("Items", justify="right")
    table.add_column("Est. Time", justify="right")

    for module in plan.required_modules:
        table.add_row(
            str(module.priority),
            module.name,
            module.reason,
            str(module.item_count),
            format_duration(module.estimated_duration_seconds)
        )
    for module in plan.skipped_modules:
        table.add_row(
            "-",
            f"[{Style.DIM}]{module.name}[/{Style.DIM}]",
            f"[{Style.DIM}]{module.reason}[/{Style.DIM}]",
            "",
            ""
        )

    ctx.console.print(table)

    if plan.required_modules:
        ctx.console.print(
            f"[{Style.BOLD}]{len(plan.required_modules)} module(s) to run, "
            f"{len(plan.skipped_modules)} skipped[/{Style.BOLD}] - "
            f"{plan.total_items_detected} item(s), estimated {format_duration(plan.total_estimated_seconds)}"
        )
    else:
        ctx.console.print(f"[{Style.GREEN}]✓ Nothing to do - all {len(plan.skipped_modules)} modules skipped[/{Style.GREEN}]")


def print_run_outcomes(result: RunResult, ctx):
    """Print per-module outcomes of a run."""
    table = Table(title="Run Outcomes")
    table.add_column("Module", style=Style.BOLD)
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Error", style=Style.DIM)

    for outcome in result.outcomes:
        table.add_row(
            outcome.name,
            format_outcome_cell(outcome.status),
            str(outcome.attempts),
            outcome.error or ""
        )

    ctx.console.print(table)


def print_failure_report(report: FailureReport, ctx):
    """Print the failure report summary.

    Args:
        report: Failure report
        ctx: CLI context
    """
    if report.aborted:
        ctx.console.print(f"\n[{Style.RED}]✗ Run ABORTED[/{Style.RED}]")
    elif report.total_failures:
        ctx.console.print(f"\n[{Style.YELLOW}]Run completed with failures[/{Style.YELLOW}]")
    else:
        ctx.console.print(f"\n[{Style.GREEN}]✓ Run completed without failures[/{Style.GREEN}]")

    ctx.console.print(f"  Failures: {report.total_failures}")
    ctx.console.print(f"  Retries: {report.total_retries}")
    ctx.console.print(f"  Skipped: {report.total_skipped}")
    ctx.console.print(f"  Last impact: {format_impact_cell(report.last_impact_level)}")

    if report.failed_modules:
        ctx.console.print(f"  Failed modules: {', '.join(report.failed_modules)}")
    if report.skipped_modules:
        ctx.console.print(f"  Skipped modules: {', '.join(report.skipped_modules)}")


def print_graph_table(graph, impacts, policy, ctx):
    """Print dependency edges with each module's failure impact.

    Args:
        graph: DependencyGraph
        impacts: Module name -> FailureImpact
        policy: FailurePolicy, used to flag critical modules
        ctx: CLI context
    """
    table = Table(title="Module Dependency Graph")
    table.add_column("Module", style=Style.BOLD)
    table.add_column("Depends On")
    table.add_column("Dependents")
    table.add_column("Impact")
    table.add_column("Critical", justify="center")

    for name in sorted(graph.nodes):
        impact = impacts[name]
        table.add_row(
            name,
            ', '.join(sorted(graph.dependencies(name))) or f"[{Style.DIM}]-[/{Style.DIM}]",
            ', '.join(impact.all_dependents) or f"[{Style.DIM}]-[/{Style.DIM}]",
            format_impact_cell(impact.impact_level),
            f"[{Style.RED}]yes[/{Style.RED}]" if policy.is_critical(name) else ""
        )

    ctx.console.print(table)


def print_impact(impact: FailureImpact, critical: bool, ctx):
    """Print the failure impact of a single module."""
    ctx.console.print(f"[{Style.BOLD}]Failure impact of {impact.failed_module}[/{Style.BOLD}]")
    if critical:
        ctx.console.print(f"  [{Style.RED}]Critical module[/{Style.RED}]")
    ctx.console.print(f"  Impact level: {format_impact_cell(impact.impact_level)}")
    ctx.console.print(f"  Direct dependents: {', '.join(sorted(impact.direct_dependents)) or '-'}")
    ctx.console.print(f"  Transitive dependents: {', '.join(sorted(impact.transitive_dependents)) or '-'}")
