"""CLI context and configuration."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from rich.console import Console


@dataclass
class CliContext:
    """Context object for CLI operations.

    Carries the console and the environment built at startup (configuration,
    dependency graph, failure policy, priorities) instead of global state.

    Attributes:
        console: Rich Console instance for output
        verbose: Whether verbose output is enabled
        json_output_mode: Whether JSON output mode is active
        output_file: Optional path to write JSON output to
        config: Loaded configuration dict
        graph: Module dependency graph
        policy: Failure handling policy
        priorities: Effective module priority table
    """
    console: Console
    verbose: bool = False
    json_output_mode: bool = False
    output_file: Optional[str] = None
    config: Dict[str, Any] = field(default_factory=dict)
    graph: Any = None
    policy: Any = None
    priorities: Dict[str, int] = field(default_factory=dict)

    def log_verbose(self, message: str):
        """Print verbose messages if verbose mode is enabled.

        Args:
            message: The message to print
        """
        if self.verbose and not self.json_output_mode:
            self.console.print(f"[dim]{message}[/dim]")
