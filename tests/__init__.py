"""
Test suite for the Remediation Planner.

This package contains tests covering:
- Audit finding normalization and execution planning
- Dependency graph validation and failure impact analysis
- Failure strategy resolution and the execution state machine
- Module runner, report writer and CLI operations
- Configuration loading and environment overlay
"""
