"""
Shared pytest fixtures and configuration for all tests.

This module provides fixtures for:
- Temporary configuration files and directories
- Audit findings for the seven-module catalog
- Dependency graphs (default catalog graph and small fabricated graphs)
- Failure policies
"""

import json
import tempfile
import shutil
from pathlib import Path
from typing import Dict, Any, Generator
import pytest
import yaml

from remediation_planner.execution.graph import DependencyGraph, default_dependency_graph
from remediation_planner.utils.constants import Category
from remediation_planner.utils.models import AuditFinding, FailurePolicy


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory that is cleaned up after the test."""
    temp_path = Path(tempfile.mkdtemp(prefix="planner_test_"))
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def temp_config_dir(temp_dir: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = temp_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def temp_output_dir(temp_dir: Path) -> Path:
    """Create a temporary output directory for reports."""
    output_dir = temp_dir / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@pytest.fixture
def minimal_config_data(temp_dir: Path) -> Dict[str, Any]:
    """Minimal configuration data: logging only, everything else defaulted."""
    return {
        "logging": {
            "file": str(temp_dir / "logs" / "test.log"),
            "level": "DEBUG"
        }
    }


@pytest.fixture
def strict_config_data(temp_dir: Path) -> Dict[str, Any]:
    """Configuration that never retries and aborts on any failure."""
    return {
        "logging": {
            "file": str(temp_dir / "logs" / "strict.log"),
            "level": "INFO"
        },
        "failure_policy": {
            "max_retries": 0,
            "retry_delay_seconds": 0,
            "abort_on_critical_failure": True,
            "continue_on_non_critical_failure": False,
            "critical_modules": ["BloatwareRemoval"]
        },
        "output": {
            "dir": str(temp_dir / "output"),
            "compress": False
        }
    }


def write_config_file(config_dir: Path, config_data: Dict[str, Any], filename: str = "config.yaml") -> Path:
    """Helper function to write configuration data to a YAML file.

    Args:
        config_dir: Directory to write the config file
        config_data: Configuration dictionary
        filename: Name of the config file (default: config.yaml)

    Returns:
        Path to the written config file
    """
    config_path = config_dir / filename
    with open(config_path, 'w') as f:
        yaml.dump(config_data, f, default_flow_style=False, sort_keys=False)
    return config_path


def write_findings_file(directory: Path, raw_results: Dict[str, Any], filename: str = "findings.json") -> Path:
    """Helper function to write raw audit results to a JSON file."""
    path = directory / filename
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(raw_results, f)
    return path


@pytest.fixture
def minimal_config_file(temp_config_dir: Path, minimal_config_data: Dict[str, Any]) -> Path:
    """Create a minimal config file in a temporary directory."""
    return write_config_file(temp_config_dir, minimal_config_data)


@pytest.fixture
def strict_config_file(temp_config_dir: Path, strict_config_data: Dict[str, Any]) -> Path:
    """Create a strict config file in a temporary directory."""
    return write_config_file(temp_config_dir, strict_config_data)


@pytest.fixture
def all_clear_findings() -> Dict[Category, AuditFinding]:
    """Findings with nothing to do in any category."""
    findings = {category: AuditFinding(category=category, item_count=0) for category in Category}
    findings[Category.SECURITY] = AuditFinding(category=Category.SECURITY, score_percent=100)
    return findings


@pytest.fixture
def busy_findings() -> Dict[Category, AuditFinding]:
    """Findings that require every module."""
    return {
        Category.BLOATWARE: AuditFinding(Category.BLOATWARE, item_count=5),
        Category.ESSENTIAL_APPS: AuditFinding(Category.ESSENTIAL_APPS, item_count=2),
        Category.SYSTEM_OPTIMIZATION: AuditFinding(Category.SYSTEM_OPTIMIZATION, item_count=4),
        Category.TELEMETRY: AuditFinding(Category.TELEMETRY, item_count=3),
        Category.SECURITY: AuditFinding(Category.SECURITY, item_count=2, score_percent=60),
        Category.WINDOWS_UPDATES: AuditFinding(Category.WINDOWS_UPDATES, item_count=1),
        Category.APP_UPGRADE: AuditFinding(Category.APP_UPGRADE, item_count=6),
    }


@pytest.fixture
def raw_audit_results() -> Dict[str, Any]:
    """Raw audit output in the mixed shapes the scanners produce."""
    return {
        "Bloatware": ["Microsoft.BingNews", "Microsoft.GetHelp", "king.com.CandyCrushSaga"],
        "EssentialApps": {"DetectedItems": ["7zip.7zip"]},
        "SystemOptimization": {"Count": 4},
        "Telemetry": {"DetectedItems": ["DiagTrack", "dmwappushservice"]},
        "Security": {"Score": 72.5, "FailedChecks": 3},
        "WindowsUpdates": {"PendingAudit": {"PendingCount": 2}},
        "AppUpgrade": []
    }


@pytest.fixture
def default_graph() -> DependencyGraph:
    """Dependency graph over the catalog with default edges."""
    return default_dependency_graph()


@pytest.fixture
def wide_graph() -> DependencyGraph:
    """Fabricated graph where 'Core' has 3 direct and 2 transitive dependents.

    Core <- A, B, C; A <- D; D <- E
    """
    return DependencyGraph(
        ['Core', 'A', 'B', 'C', 'D', 'E', 'Lonely'],
        {'A': ['Core'], 'B': ['Core'], 'C': ['Core'], 'D': ['A'], 'E': ['D']}
    )


@pytest.fixture
def default_policy() -> FailurePolicy:
    """Policy with one retry, critical Bloatware/Security, continue on others."""
    return FailurePolicy(
        max_retries=1,
        abort_on_critical_failure=True,
        continue_on_non_critical_failure=True,
        critical_modules=frozenset({'BloatwareRemoval', 'SecurityEnhancement'}),
        retry_delay_seconds=0
    )
