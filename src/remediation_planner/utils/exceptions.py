"""Custom exceptions for remediation_planner.

Construction-time faults (bad configuration, bad dependency graph, bad
failure policy) are raised as exceptions. Runtime degenerate inputs such as
missing audit findings are never errors and do not appear here.
"""


class RemediationPlannerError(Exception):
    """Base exception for all remediation_planner errors.

    All custom exceptions in the project should inherit from this base class.
    """
    pass


class ConfigurationError(RemediationPlannerError):
    """Configuration file or settings error.

    Raised when:
    - Configuration values are out of acceptable range
    - A required action or setting is missing for a planned module
    - YAML content has the wrong shape for a section
    """
    pass


class InvalidPolicyError(ConfigurationError):
    """Failure policy values are invalid.

    Raised when:
    - max_retries or retry_delay_seconds is negative or not a number
    - critical_modules is not a list of known module names
    """
    pass


class InvalidGraphError(RemediationPlannerError):
    """Module dependency graph is invalid.

    Raised when:
    - An edge references a node that is not in the node set
    - A module depends on itself
    - The dependency edges contain a cycle
    - A plan references a module absent from the graph
    """
    pass


class UnknownModuleError(RemediationPlannerError):
    """A module name was queried that does not exist in the dependency graph.

    This is a programmer error in the caller (a name that was never planned),
    so it is raised instead of returning an empty result.
    """

    def __init__(self, module_name):
        self.module_name = module_name
        super().__init__(f"Unknown module: '{module_name}'")


class AuditInputError(RemediationPlannerError):
    """Audit results file could not be read.

    Raised when:
    - The findings file does not exist
    - The findings file is not valid JSON

    Individual missing or malformed findings inside a readable file are not
    errors; they are planned as "nothing to do".
    """
    pass


class ReportGenerationError(RemediationPlannerError):
    """Error generating output reports.

    Raised when:
    - Cannot write report file
    - JSON serialization fails
    - Output directory is not writable
    """
    pass


__all__ = [
    'RemediationPlannerError',
    'ConfigurationError',
    'InvalidPolicyError',
    'InvalidGraphError',
    'UnknownModuleError',
    'AuditInputError',
    'ReportGenerationError',
]
