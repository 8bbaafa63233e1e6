"""
Remediation Planner - execution planning and failure handling for Windows maintenance runs.

This package turns audit findings into a prioritized execution plan and
decides, module by module, whether to retry, skip dependents, or abort when
a remediation module fails.
"""

import importlib.metadata
from pathlib import Path

# Defaults
__version__ = "unknown"
__license__ = "MIT"


def _read_pyproject_toml():
    """Read and parse pyproject.toml file."""
    try:
        import tomllib  # Python 3.11+
    except ModuleNotFoundError:
        return None

    pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        with open(pyproject_path, "rb") as f:
            return tomllib.load(f)
    return None


# Try to get version from installed package metadata
try:
    __version__ = importlib.metadata.version("remediation-planner")
except importlib.metadata.PackageNotFoundError:
    # Fallback: read from pyproject.toml
    pyproject_data = _read_pyproject_toml()
    if pyproject_data:
        __version__ = pyproject_data.get("project", {}).get("version", __version__)

__all__ = ['__version__', '__license__']
