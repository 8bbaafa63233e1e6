"""JSON report writer for execution plans and run results."""
import gzip
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from remediation_planner.utils.datetime_utils import get_filename_timestamp, get_utc_iso_timestamp
from remediation_planner.utils.exceptions import ReportGenerationError
from remediation_planner.utils.models import ExecutionPlan, FailurePolicy, RunResult


logger = logging.getLogger(__name__)


class ReportWriter:
    """Write JSON reports to timestamped files."""

    def __init__(self, output_dir: str, compress: bool = False):
        """Initialize report writer.

        Args:
            output_dir: Directory for output files
            compress: Whether to gzip compress output files

        Raises:
            ReportGenerationError: If the output directory cannot be created
        """
        self.output_dir = Path(output_dir)
        self.compress = compress

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReportGenerationError(f"Cannot create output directory {self.output_dir}: {e}") from e
        logger.info("Report writer initialized. Output dir: %s", self.output_dir)

    def write_report(self, report_type: str, data: Dict[str, Any],
                     metadata: Optional[Dict[str, Any]] = None) -> Path:
        """Write a JSON report to a timestamped file.

        Args:
            report_type: Type of report (e.g., 'execution-plan', 'run-report')
            data: Report data to write
            metadata: Optional metadata merged over the standard fields

        Returns:
            Path to written file
        """
        from remediation_planner import __version__ as APP_VERSION

        filename = f"{report_type}_{get_filename_timestamp()}.json"
        if self.compress:
            filename += ".gz"
        filepath = self.output_dir / filename

        standard_metadata = {
            'version': APP_VERSION,
            'timestamp': get_utc_iso_timestamp(),
            'report_type': report_type,
            'command': ' '.join(sys.argv)
        }
        if metadata:
            standard_metadata.update(metadata)

        report = {'metadata': standard_metadata}
        report.update(data)

        try:
            if self.compress:
                with gzip.open(filepath, 'wt', encoding='utf-8') as f:
                    json.dump(report, f, indent=2, default=str)
            else:
                with open(filepath, 'w', encoding='utf-8') as f:
                    json.dump(report, f, indent=2, default=str)
        except (OSError, TypeError, ValueError) as e:
            error_msg = f"Failed to write report to {filepath}: {e}"
            logger.error(error_msg)
            raise ReportGenerationError(error_msg) from e

        logger.info("Wrote report to %s (%s bytes)", filepath, f"{filepath.stat().st_size:,}")
        return filepath

    def write_plan(self, plan: ExecutionPlan) -> Path:
        """Write an execution plan report."""
        return self.write_report('execution-plan', {'plan': plan.to_dict()})

    def write_run_result(self, result: RunResult, policy: Optional[FailurePolicy] = None) -> Path:
        """Write a run report with outcomes and the failure report.

        Args:
            result: Result of a runner pass
            policy: Failure policy used for the run, recorded in metadata

        Returns:
            Path to written file
        """
        metadata = {'failure_policy': policy.to_dict()} if policy else None
        return self.write_report('run-report', result.to_dict(), metadata)
