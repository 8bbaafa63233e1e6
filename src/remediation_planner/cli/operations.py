"""Operations behind the plan, simulate and graph subcommands."""
import logging
from typing import Callable, Dict, Iterable, Optional, Tuple

from remediation_planner.execution.impact import analyze_impact
from remediation_planner.execution.report_writer import ReportWriter
from remediation_planner.execution.runner import ModuleRunner
from remediation_planner.planning.findings import normalize_audit_results
from remediation_planner.planning.planner import build_plan, log_plan
from remediation_planner.utils.models import PlannedModule
from .cli_setup import load_findings_file


def build_plan_from_file(path: str, ctx):
    """Load, normalize and plan a findings file.

    Args:
        path: Path to findings JSON file
        ctx: CLI context

    Returns:
        ExecutionPlan
    """
    ctx.log_verbose(f"Loading audit findings from {path}")
    raw = load_findings_file(path)
    findings = normalize_audit_results(raw)
    ctx.log_verbose(f"Normalized {len(findings)} audit finding(s)")

    plan = build_plan(findings, ctx.priorities)
    log_plan(plan)
    return plan


def build_simulated_actions(module_names: Iterable[str],
                            fail_specs: Iterable[Tuple[str, Optional[int]]]) -> Dict[str, Callable]:
    """Build remediation actions that succeed unless told to fail.

    Args:
        module_names: Modules that need an action
        fail_specs: (module, times) pairs; times None means fail every attempt

    Returns:
        dict: Module name -> action callable
    """
    failures = dict(fail_specs)

    def make_action(name):
        calls = {'count': 0}

        def action(module: PlannedModule) -> bool:
            calls['count'] += 1
            if name not in failures:
                return True
            times = failures[name]
            if times is None or calls['count'] <= times:
                logging.info("Simulated failure of %s (call %s)", module.name, calls['count'])
                return False
            return True

        return action

    return {name: make_action(name) for name in module_names}


def _save_report(ctx, write):
    writer = ReportWriter(ctx.config['output']['dir'], compress=ctx.config['output'].get('compress', False))
    path = write(writer)
    ctx.log_verbose(f"Report saved to {path}")
    return path


def handle_plan(args, ctx) -> dict:
    """Build the execution plan for the plan subcommand.

    Returns:
        Output data dict for the output strategy
    """
    plan = build_plan_from_file(args.findings, ctx)

    report_path = None
    if args.save_report:
        report_path = _save_report(ctx, lambda writer: writer.write_plan(plan))

    return {'kind': 'plan', 'plan': plan, 'report_path': report_path}


def handle_simulate(args, ctx) -> dict:
    """Build the plan and run it with simulated actions.

    Returns:
        Output data dict for the output strategy
    """
    plan = build_plan_from_file(args.findings, ctx)
    actions = build_simulated_actions(plan.module_names, args.fail_specs)

    runner_kwargs = {}
    if args.no_delay:
        runner_kwargs['sleep'] = lambda seconds: None
    runner = ModuleRunner(plan, ctx.graph, ctx.policy, actions, **runner_kwargs)

    ctx.log_verbose(f"Simulating {len(plan.required_modules)} module(s)...")
    result = runner.run()

    report_path = None
    if args.save_report:
        report_path = _save_report(ctx, lambda writer: writer.write_run_result(result, ctx.policy))

    return {'kind': 'run', 'result': result, 'policy': ctx.policy, 'report_path': report_path}


def handle_graph(args, ctx) -> dict:
    """Describe the dependency graph, or one module's failure impact.

    Returns:
        Output data dict for the output strategy
    """
    if args.module:
        impact = analyze_impact(ctx.graph, args.module)
        return {'kind': 'impact', 'impact': impact, 'critical': ctx.policy.is_critical(args.module)}

    impacts = {name: analyze_impact(ctx.graph, name) for name in sorted(ctx.graph.nodes)}
    return {'kind': 'graph', 'graph': ctx.graph, 'impacts': impacts, 'policy': ctx.policy}
