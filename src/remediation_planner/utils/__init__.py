"""Shared utility modules for remediation_planner."""

__all__ = [
    'config',
    'constants',
    'datetime_utils',
    'exceptions',
    'logger',
    'models',
]
