"""Output strategies for different display formats."""
from abc import ABC, abstractmethod
from typing import Dict, Any
import json


def build_json_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert operation output data to a JSON-serializable dict.

    Args:
        data: Output data from an operation handler

    Returns:
        dict: Serializable payload
    """
    kind = data['kind']

    if kind == 'plan':
        payload = {'plan': data['plan'].to_dict()}
    elif kind == 'run':
        payload = data['result'].to_dict()
        payload['failure_policy'] = data['policy'].to_dict()
    elif kind == 'impact':
        payload = {'impact': data['impact'].to_dict(), 'critical': data['critical']}
    elif kind == 'graph':
        payload = {
            'dependencies': data['graph'].to_dict(),
            'impacts': {name: impact.to_dict() for name, impact in data['impacts'].items()},
            'critical_modules': sorted(data['policy'].critical_modules),
        }
    else:
        raise ValueError(f"Unknown output kind: {kind}")

    if data.get('report_path'):
        payload['report_path'] = str(data['report_path'])
    return payload


class OutputStrategy(ABC):
    """Abstract base class for output strategies."""

    @abstractmethod
    def output(self, data: Dict[str, Any], context) -> None:
        """Output data in specific format.

        Args:
            data: Data dictionary to output
            context: CLI context
        """


class TextOutputStrategy(OutputStrategy):
    """Strategy for text/table output."""

    def output(self, data: Dict[str, Any], context) -> None:
        """Display data as Rich tables.

        Args:
            data: Data dictionary from an operation handler
            context: CLI context
        """
        # Import here to avoid circular dependencies
        from .formatters import (
            print_plan_table, print_run_outcomes, print_failure_report,
            print_graph_table, print_impact
        )

        kind = data['kind']

        if kind == 'plan':
            print_plan_table(data['plan'], context)
        elif kind == 'run':
            result = data['result']
            print_plan_table(result.plan, context)
            context.console.print()
            print_run_outcomes(result, context)
            print_failure_report(result.report, context)
        elif kind == 'impact':
            print_impact(data['impact'], data['critical'], context)
        elif kind == 'graph':
            print_graph_table(data['graph'], data['impacts'], data['policy'], context)
        else:
            raise ValueError(f"Unknown output kind: {kind}")

        if data.get('report_path'):
            context.console.print(f"\n[dim]Report written to {data['report_path']}[/dim]")


class JsonOutputStrategy(OutputStrategy):
    """Strategy for JSON output."""

    def output(self, data: Dict[str, Any], context) -> None:
        """Output data as JSON to stdout or to context.output_file.

        Args:
            data: Data dictionary from an operation handler
            context: CLI context
        """
        json_str = json.dumps(build_json_payload(data), indent=2)

        output_file = getattr(context, 'output_file', None)
        if output_file:
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(json_str)
            if not context.json_output_mode:
                context.console.print(f"[green]JSON output written to {output_file}[/green]")
        else:
            print(json_str)


def get_output_strategy(output_format: str) -> OutputStrategy:
    """Get output strategy for the given format.

    Args:
        output_format: 'text' or 'json'

    Returns:
        OutputStrategy instance

    Raises:
        ValueError: If the format is not supported
    """
    strategies = {
        'text': TextOutputStrategy,
        'json': JsonOutputStrategy,
    }
    if output_format not in strategies:
        raise ValueError(f"Unsupported output format: {output_format}")
    return strategies[output_format]()
