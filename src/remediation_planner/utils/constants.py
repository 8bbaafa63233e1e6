"""Shared constants for the remediation planner.

Constants used across planning, execution, and CLI modules.
"""
from enum import Enum
from typing import Dict, List


# Security score at or above which no enhancement is needed
SECURITY_SCORE_THRESHOLD = 85

# Fixed duration for a security enhancement pass, in seconds
SECURITY_ENHANCEMENT_DURATION_SECONDS = 20

# Default failure policy values
DEFAULT_MAX_RETRIES = 1
DEFAULT_RETRY_DELAY_SECONDS = 5
DEFAULT_ENV_PREFIX = 'REMEDIATION_'


# Rich styles (used by CLI formatters and output strategies)
class Style:  # pylint: disable=too-few-public-methods
    """Rich markup style constants."""
    GREEN = "green"
    RED = "red"
    YELLOW = "yellow"
    DIM = "dim"
    CYAN = "cyan"
    BOLD = "bold"


class Category(Enum):
    """Audit finding categories, one per remediation module."""
    BLOATWARE = "Bloatware"
    ESSENTIAL_APPS = "EssentialApps"
    SYSTEM_OPTIMIZATION = "SystemOptimization"
    TELEMETRY = "Telemetry"
    SECURITY = "Security"
    WINDOWS_UPDATES = "WindowsUpdates"
    APP_UPGRADE = "AppUpgrade"


class ImpactLevel(Enum):
    """Severity bucket for the number of modules affected by a failure."""
    NONE = "None"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class FailureStrategy(Enum):
    """Decision taken after a module failure."""
    RETRY = "Retry"
    SKIP_DEPENDENTS = "SkipDependents"
    ABORT = "Abort"
    CONTINUE = "Continue"


class RunStatus(Enum):
    """Execution state machine status."""
    RUNNING = "Running"
    ABORTED = "Aborted"
    COMPLETED = "Completed"


class OutcomeStatus(Enum):
    """Per-module result of a runner pass."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_RUN = "not_run"


# Module name for each category. Dict order is the catalog order and
# breaks priority ties.
CATEGORY_MODULES: Dict[Category, str] = {
    Category.BLOATWARE: 'BloatwareRemoval',
    Category.ESSENTIAL_APPS: 'EssentialApps',
    Category.SYSTEM_OPTIMIZATION: 'SystemOptimization',
    Category.TELEMETRY: 'TelemetryDisable',
    Category.SECURITY: 'SecurityEnhancement',
    Category.WINDOWS_UPDATES: 'WindowsUpdates',
    Category.APP_UPGRADE: 'AppUpgrade',
}

MODULE_CATALOG: List[str] = list(CATEGORY_MODULES.values())

DEFAULT_PRIORITIES: Dict[str, int] = {
    'BloatwareRemoval': 1,
    'SecurityEnhancement': 2,
    'SystemOptimization': 3,
    'TelemetryDisable': 4,
    'EssentialApps': 5,
    'WindowsUpdates': 6,
    'AppUpgrade': 7,
}

SKIP_REASONS: Dict[str, str] = {
    'BloatwareRemoval': 'No bloatware detected',
    'EssentialApps': 'All essential apps installed',
    'SystemOptimization': 'System already optimized',
    'TelemetryDisable': 'Telemetry already disabled',
    'SecurityEnhancement': f'Security score meets {SECURITY_SCORE_THRESHOLD}% threshold',
    'WindowsUpdates': 'No pending updates',
    'AppUpgrade': 'All apps up to date',
}

# Module name -> modules it depends on
DEFAULT_DEPENDENCIES: Dict[str, List[str]] = {
    'BloatwareRemoval': [],
    'SecurityEnhancement': [],
    'SystemOptimization': ['BloatwareRemoval'],
    'TelemetryDisable': ['BloatwareRemoval'],
    'EssentialApps': ['BloatwareRemoval'],
    'WindowsUpdates': ['SecurityEnhancement'],
    'AppUpgrade': ['EssentialApps'],
}

DEFAULT_CRITICAL_MODULES: List[str] = ['BloatwareRemoval', 'SecurityEnhancement']
