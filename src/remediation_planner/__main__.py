#!/usr/bin/env python3
"""
Remediation Planner CLI Tool

Builds execution plans from audit findings, simulates runs with failure
handling, and shows the module dependency graph.
"""

from remediation_planner.utils.exceptions import (
    RemediationPlannerError, ConfigurationError, InvalidGraphError, AuditInputError, ReportGenerationError
)
from remediation_planner.cli.output_strategies import get_output_strategy
from remediation_planner.cli.operations import handle_plan, handle_simulate, handle_graph
from remediation_planner.cli.cli_setup import parse_arguments, setup_environment
from remediation_planner.cli.context import CliContext
from rich.console import Console
import json
import sys

# Exit code for a simulated run that ended in Abort
EXIT_RUN_ABORTED = 2

COMMAND_HANDLERS = {
    'plan': handle_plan,
    'simulate': handle_simulate,
    'graph': handle_graph,
}


def _handle_error(error, error_type, ctx, exit_code=1):
    """Handle error reporting for both JSON and console output modes."""
    if ctx.json_output_mode:
        print(json.dumps({"error": error_type, "message": str(error)}))
    else:
        ctx.console.print(f"[bold red]{error_type}:[/bold red] {error}")
        if ctx.verbose and hasattr(error, '__traceback__'):
            import traceback
            ctx.console.print(traceback.format_exc())
    sys.exit(exit_code)


def _handle_keyboard_interrupt(ctx):
    """Handle KeyboardInterrupt (Ctrl+C) gracefully."""
    if not ctx.json_output_mode:
        ctx.console.print("\n[yellow]Operation cancelled by user[/yellow]")
    sys.exit(130)


def _run_command(args, ctx):
    """Set up the environment, run the subcommand and render its output."""
    try:
        ctx = setup_environment(args)

        data = COMMAND_HANDLERS[args.command](args, ctx)

        output_strategy = get_output_strategy(args.output_format)
        output_strategy.output(data, ctx)

        if data['kind'] == 'run' and data['result'].report.aborted:
            sys.exit(EXIT_RUN_ABORTED)

    except ConfigurationError as e:
        _handle_error(e, "Configuration Error", ctx)

    except InvalidGraphError as e:
        _handle_error(e, "Dependency Graph Error", ctx)

    except AuditInputError as e:
        _handle_error(e, "Audit Input Error", ctx)

    except ReportGenerationError as e:
        _handle_error(e, "Report Error", ctx)

    except RemediationPlannerError as e:
        _handle_error(e, "Error", ctx)

    except KeyboardInterrupt:
        _handle_keyboard_interrupt(ctx)

    except Exception as e:  # pylint: disable=broad-exception-caught
        _handle_error(e, "Unexpected Error", ctx)


def main(argv=None):
    """Main CLI entry point."""
    args = parse_arguments(argv)

    ctx = CliContext(
        console=Console(),
        verbose=args.verbose,
        json_output_mode=(args.output_format == 'json')
    )

    if args.command is None:
        ctx.console.print("[bold red]Error:[/bold red] No command given. Use one of: plan, simulate, graph (see --help)")
        sys.exit(1)

    _run_command(args, ctx)


if __name__ == "__main__":
    main()
