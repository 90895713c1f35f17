"""
JSON Reporter Module
====================

Exports sweep results to JSON for auditing and automation.

Output Structure
----------------
::

    {
      "metadata": {
        "regions": ["us-east-1"],
        "resource_types": ["elb"],
        "dry_run": false,
        "total_matched": 2,
        "start_time": "2024-01-15T10:30:00+00:00",
        "end_time": "2024-01-15T10:31:02+00:00"
      },
      "pipelines": [...],
      "failed_pipelines": [...],
      "outcomes": {"total": 2, "deleted": 2, "failed": 0, "entries": [...]}
    }

Classes
-------
JSONReporter
    Reporter class for JSON export.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from cloudsweep.core.region_manager import SweepRunResult

logger = logging.getLogger(__name__)


class JSONReporter:
    """
    Reporter for exporting sweep results to JSON.

    Parameters
    ----------
    output_path : str, optional
        Path for the output file. Defaults to a timestamped filename in
        the current directory.
    indent : int, default=2
        JSON indentation level. ``None`` gives compact output.
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        indent: Optional[int] = 2,
    ) -> None:
        self.output_path = output_path
        self.indent = indent

    def _get_output_path(self) -> Path:
        if self.output_path:
            return Path(self.output_path)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return Path(f"cloudsweep_{timestamp}.json")

    def to_dict(self, result: SweepRunResult) -> Dict[str, Any]:
        """Build the JSON document as a dictionary."""
        data = result.to_dict()
        return {
            "metadata": {
                "regions": data["regions"],
                "resource_types": data["resource_types"],
                "dry_run": data["dry_run"],
                "total_matched": data["total_matched"],
                "start_time": data["start_time"],
                "end_time": data["end_time"],
            },
            "pipelines": data["pipelines"],
            "failed_pipelines": data["failed_pipelines"],
            "outcomes": data["outcomes"],
        }

    def to_string(self, result: SweepRunResult) -> str:
        """Render the JSON document without writing it."""
        return json.dumps(self.to_dict(result), indent=self.indent, default=str)

    def report(self, result: SweepRunResult) -> str:
        """
        Write the JSON document to disk.

        Returns
        -------
        str
            Path to the created file.
        """
        output_path = self._get_output_path()
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(result), f, indent=self.indent, default=str)

        logger.info(f"JSON export complete: {output_path}")
        return str(output_path)

    def __repr__(self) -> str:
        return f"JSONReporter(output_path={self.output_path!r}, indent={self.indent})"
