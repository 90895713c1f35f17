"""
Report Generators
=================

Output formatters for sweep results.

Available Reporters
-------------------
CLIReporter
    Rich terminal output: matching resources, deletion outcomes, failed
    pipelines.
JSONReporter
    JSON export of the full run result.

Example
-------
>>> from cloudsweep.reporters import CLIReporter, JSONReporter
>>>
>>> CLIReporter().report_outcomes(result)
>>> JSONReporter(output_path="sweep.json").report(result)
"""

from cloudsweep.reporters.cli_reporter import CLIReporter
from cloudsweep.reporters.json_reporter import JSONReporter

__all__ = [
    "CLIReporter",
    "JSONReporter",
]
