"""CLI module for the remediation-planner tool."""

from remediation_planner.cli.cli_setup import parse_arguments, setup_environment
from remediation_planner.cli.context import CliContext
from remediation_planner.cli.operations import handle_plan, handle_simulate, handle_graph
from remediation_planner.cli.output_strategies import get_output_strategy

__all__ = [
    'parse_arguments',
    'setup_environment',
    'CliContext',
    'handle_plan',
    'handle_simulate',
    'handle_graph',
    'get_output_strategy'
]
