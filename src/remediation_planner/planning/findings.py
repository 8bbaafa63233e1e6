"""
Normalization of raw audit results into AuditFinding records.

Audit modules report their results in different shapes: a plain list of
detected items, an object with ``DetectedItems``, an object with a nested
``PendingAudit.PendingCount``, or a security object carrying a score. This
module reduces each of them to a single count (or score) so the planner only
sees clean findings.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from remediation_planner.utils.constants import CATEGORY_MODULES, Category
from remediation_planner.utils.models import AuditFinding


logger = logging.getLogger(__name__)

COUNT_KEYS = ('Count', 'ItemCount', 'item_count', 'count')
SCORE_KEYS = ('ScorePercent', 'Score', 'score_percent', 'score')
FAILED_CHECK_KEYS = ('FailedChecks', 'failed_checks')


def _build_key_index() -> Dict[str, Category]:
    index = {}
    for category, module_name in CATEGORY_MODULES.items():
        index[category.value.lower()] = category
        index[category.name.lower()] = category
        index[module_name.lower()] = category
    return index


_KEY_INDEX = _build_key_index()


def resolve_category(key) -> Optional[Category]:
    """Resolve a raw result key to a category.

    Accepts Category members, category values, enum names and module names,
    case-insensitive.

    Args:
        key: Raw key from the audit results

    Returns:
        Category or None if the key is not recognized
    """
    if isinstance(key, Category):
        return key
    if not isinstance(key, str):
        return None
    return _KEY_INDEX.get(key.strip().lower())


def _count_value(value) -> Optional[int]:
    """Count for a scalar or list value, None if the shape is not countable."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return len(value)
    if isinstance(value, (int, float)):
        try:
            return max(int(value), 0)
        except (ValueError, OverflowError):
            return None
    if isinstance(value, str):
        try:
            return max(int(value.strip()), 0)
        except ValueError:
            return None
    return None


def _first_present(raw: Mapping, keys) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def extract_item_count(raw) -> Optional[int]:
    """Extract an item count from a raw audit result.

    Supported shapes, in order:
    - int or numeric string
    - list of detected items
    - mapping with ``DetectedItems`` (list or count)
    - mapping with ``PendingAudit.PendingCount``
    - mapping with ``Count`` / ``ItemCount``

    Args:
        raw: Raw audit result

    Returns:
        int or None if the shape is not recognized
    """
    count = _count_value(raw)
    if count is not None or not isinstance(raw, Mapping):
        return count

    if 'DetectedItems' in raw:
        return _count_value(raw['DetectedItems'])

    pending = raw.get('PendingAudit')
    if isinstance(pending, Mapping) and 'PendingCount' in pending:
        return _count_value(pending['PendingCount'])

    value = _first_present(raw, COUNT_KEYS)
    if value is not None:
        return _count_value(value)

    return None


def extract_security_score(raw) -> Optional[float]:
    """Extract a security score percentage from a raw audit result.

    Args:
        raw: A number, or a mapping with ``ScorePercent`` / ``Score``

    Returns:
        float or None if no score can be found
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, Mapping):
        value = _first_present(raw, SCORE_KEYS)
        if isinstance(value, bool):
            return None
        try:
            return float(value) if value is not None else None
        except (TypeError, ValueError):
            return None
    return None


def normalize_finding(category: Category, raw) -> AuditFinding:
    """Normalize one raw audit result.

    Unrecognized shapes produce a zero finding and a warning; they never raise.

    Args:
        category: Category the result belongs to
        raw: Raw audit result

    Returns:
        AuditFinding
    """
    if category == Category.SECURITY:
        score = extract_security_score(raw)
        failed_checks = 0
        if isinstance(raw, Mapping):
            failed_checks = _count_value(_first_present(raw, FAILED_CHECK_KEYS)) or 0
        if score is None:
            logger.warning("No usable security score in audit result: %r", raw)
        return AuditFinding(category=category, item_count=failed_checks, score_percent=score)

    count = extract_item_count(raw)
    if count is None:
        logger.warning("Unrecognized audit result shape for %s, treating as 0 items: %r",
                       category.value, raw)
        count = 0
    return AuditFinding(category=category, item_count=count)


def normalize_audit_results(raw_results: Mapping) -> Dict[Category, AuditFinding]:
    """Normalize a mapping of raw audit results keyed by category or module name.

    Args:
        raw_results: Raw results, e.g. loaded from an audit JSON file

    Returns:
        dict: Category -> AuditFinding for every recognized key
    """
    findings: Dict[Category, AuditFinding] = {}
    if not isinstance(raw_results, Mapping):
        logger.warning("Audit results are not a mapping, ignoring: %r", type(raw_results).__name__)
        return findings

    for key, raw in raw_results.items():
        category = resolve_category(key)
        if category is None:
            logger.warning("Ignoring audit result for unknown category '%s'", key)
            continue
        findings[category] = normalize_finding(category, raw)
        logger.debug("Normalized %s -> %s", key, findings[category])

    return findings
