"""Standardized datetime utilities for consistent timestamp formatting."""
from datetime import datetime, timezone


def get_filename_timestamp() -> str:
    """Get formatted timestamp for filenames with timezone.

    Format: YYYY-MM-DD_HH-MM-SS_TZ (e.g., 2025-12-08_14-30-45_UTC)

    Returns:
        Formatted timestamp string suitable for filenames
    """
    return datetime.now().astimezone().strftime("%Y-%m-%d_%H-%M-%S_%Z")


def get_utc_iso_timestamp() -> str:
    """Get UTC timestamp in ISO 8601 format with 'Z' suffix.

    Returns:
        ISO 8601 formatted UTC timestamp string with 'Z' suffix
    """
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
