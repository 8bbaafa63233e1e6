"""CLI setup and initialization functions."""
import argparse
import json
from typing import List, Optional, Tuple
from rich.console import Console
from remediation_planner.execution.graph import graph_from_config
from remediation_planner.utils.config import (
    apply_env_overrides, build_failure_policy, get_priorities, read_config_from_yaml
)
from remediation_planner.utils.constants import MODULE_CATALOG
from remediation_planner.utils.exceptions import AuditInputError, ConfigurationError
from remediation_planner.utils.logger import setup_logging
from remediation_planner.cli.context import CliContext


def validate_module_name(value: str) -> str:
    """Validate a module name argument against the catalog.

    Args:
        value: Module name

    Returns:
        The module name

    Raises:
        argparse.ArgumentTypeError: If the module is not in the catalog
    """
    if value not in MODULE_CATALOG:
        raise argparse.ArgumentTypeError(
            f"Unknown module: {value}. Valid modules are: {', '.join(MODULE_CATALOG)}"
        )
    return value


def validate_fail_spec(value: str) -> Tuple[str, Optional[int]]:
    """Validate a simulated failure argument.

    Format is ``MODULE`` (always fails) or ``MODULE:N`` (fails the first N
    attempts, then succeeds).

    Args:
        value: Failure spec string

    Returns:
        Tuple of (module name, failure count or None for always)

    Raises:
        argparse.ArgumentTypeError: If validation fails
    """
    name, _, count = value.partition(':')
    name = validate_module_name(name.strip())

    if not count:
        return name, None

    try:
        times = int(count)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid failure count in '{value}': must be an integer")
    if times < 1:
        raise argparse.ArgumentTypeError(f"Invalid failure count in '{value}': must be >= 1")
    return name, times


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Argument list, defaults to sys.argv[1:]

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='remediation-planner',
        description="Remediation Planner - build execution plans from audit findings and simulate failure handling",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        default="config/config.yaml",
        help="Path to configuration YAML file (default: config/config.yaml)"
    )
    parser.add_argument(
        "--output-format",
        choices=['text', 'json'],
        default='text',
        help="Output format (default: text)"
    )
    parser.add_argument(
        "--output-file",
        help="Write JSON output to file instead of stdout"
    )
    parser.add_argument(
        "--save-report",
        action="store_true",
        help="Also write a timestamped JSON report to the output directory"
    )
    parser.add_argument(
        "-o", "--output-dir",
        help="Directory for saved reports (overrides config, default: ./output)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Subcommand: plan
    plan_parser = subparsers.add_parser(
        'plan',
        help='Build an execution plan from audit findings',
        description='Normalize audit findings and show which modules must run and which are skipped'
    )
    plan_parser.add_argument(
        '-f', '--findings',
        required=True,
        help='Path to audit findings JSON file'
    )

    # Subcommand: simulate
    simulate_parser = subparsers.add_parser(
        'simulate',
        help='Run the plan with simulated remediation actions',
        description='Build the plan and execute it with simulated actions to preview failure handling. '
                    'Modules succeed unless listed with --fail.'
    )
    simulate_parser.add_argument(
        '-f', '--findings',
        required=True,
        help='Path to audit findings JSON file'
    )
    simulate_parser.add_argument(
        '--fail',
        dest='fail_specs',
        type=validate_fail_spec,
        action='append',
        default=[],
        help='Module to fail, as MODULE (always) or MODULE:N (first N attempts). Repeatable. '
             'Example: --fail EssentialApps:1'
    )
    simulate_parser.add_argument(
        '--no-delay',
        action='store_true',
        help='Do not wait retry_delay_seconds between retries'
    )

    # Subcommand: graph
    graph_parser = subparsers.add_parser(
        'graph',
        help='Show the module dependency graph or the impact of a module failure',
        description='Display dependency edges, or with --module the failure impact of one module'
    )
    graph_parser.add_argument(
        '-m', '--module',
        type=validate_module_name,
        help='Module to analyse the failure impact of'
    )

    return parser.parse_args(argv)


def load_configuration(args, ctx) -> dict:
    """Load configuration, apply environment overrides and set up logging.

    Args:
        args: Parsed command line arguments
        ctx: CLI context

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If configuration is invalid
    """
    ctx.log_verbose(f"Loading configuration from {args.config}")
    config = read_config_from_yaml(args.config)
    config = apply_env_overrides(config)
    if getattr(args, 'output_dir', None):
        config['output']['dir'] = args.output_dir
    setup_logging(config, worker_name="planner")
    return config


def load_findings_file(path: str) -> dict:
    """Load raw audit results from a JSON file.

    Args:
        path: Path to findings JSON file

    Returns:
        Raw results mapping

    Raises:
        AuditInputError: If the file is missing, unreadable or not a JSON object
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise AuditInputError(f"Findings file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise AuditInputError(f"Findings file is not valid JSON: {path}: {e}") from e
    except OSError as e:
        raise AuditInputError(f"Cannot read findings file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise AuditInputError(f"Findings file must contain a JSON object, got {type(raw).__name__}")
    return raw


def setup_environment(args) -> CliContext:
    """Setup complete environment (config, dependency graph, failure policy).

    Args:
        args: Parsed command line arguments

    Returns:
        CliContext with all environment setup complete

    Raises:
        ConfigurationError: If configuration, priorities or policy are invalid
        InvalidGraphError: If the configured dependency edges are invalid
    """
    ctx = CliContext(
        console=Console(),
        verbose=args.verbose,
        json_output_mode=(args.output_format == 'json'),
        output_file=args.output_file
    )

    config = load_configuration(args, ctx)

    ctx.log_verbose("Building module dependency graph...")
    graph = graph_from_config(config)

    try:
        policy = build_failure_policy(config)
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid failure_policy section: {e}") from e

    ctx.config = config
    ctx.graph = graph
    ctx.policy = policy
    ctx.priorities = get_priorities(config)
    return ctx
