"""
Tests for the Reporter modules.
"""

import json
from datetime import datetime, timezone

import pytest
from rich.console import Console

from cloudsweep.core.ledger import DeletionOutcome, OutcomeLedger
from cloudsweep.core.models import ResourceCandidate
from cloudsweep.core.region_manager import PipelineResult, SweepRunResult
from cloudsweep.reporters.cli_reporter import CLIReporter
from cloudsweep.reporters.json_reporter import JSONReporter


@pytest.fixture
def sample_result():
    """Create a sample SweepRunResult for testing."""
    failed = PipelineResult(resource_type="opensearch-domain", region="eu-west-1")
    failed.error = "Failed to list opensearch-domain: AccessDenied"
    failed.error_type = "ListingError"

    ledger = OutcomeLedger()
    ledger.record(DeletionOutcome.deleted("lb-1", "elb", region="us-east-1"))
    ledger.record(
        DeletionOutcome.failed("sg-222222", "security-group", "DependencyViolation: in use", region="us-east-1")
    )

    return SweepRunResult(
        regions=["us-east-1", "eu-west-1"],
        resource_types=["elb", "security-group", "opensearch-domain"],
        pipelines=[
            PipelineResult(
                resource_type="elb",
                region="us-east-1",
                candidates=[ResourceCandidate("lb-1", tags={"team": "qa"})],
            ),
            PipelineResult(
                resource_type="security-group",
                region="us-east-1",
                candidates=[ResourceCandidate("sg-222222", label="[bold]ci-runner")],
            ),
            failed,
        ],
        ledger=ledger,
        dry_run=False,
        start_time=datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def console():
    """A recording console wide enough to avoid wrapping."""
    return Console(record=True, width=200)


class TestJSONReporter:
    """Tests for JSONReporter class."""

    def test_export(self, sample_result, tmp_path):
        """Test exporting results to JSON."""
        output_path = tmp_path / "sweep.json"
        result_path = JSONReporter(output_path=str(output_path)).report(sample_result)

        assert result_path == str(output_path)
        data = json.loads(output_path.read_text())

        assert data["metadata"]["regions"] == ["us-east-1", "eu-west-1"]
        assert data["metadata"]["total_matched"] == 2
        assert data["metadata"]["dry_run"] is False
        assert data["metadata"]["start_time"] == "2024-01-15T10:30:00+00:00"
        assert len(data["pipelines"]) == 3
        assert data["failed_pipelines"][0]["error_type"] == "ListingError"
        assert data["outcomes"]["deleted"] == 1
        assert data["outcomes"]["failed"] == 1
        assert data["outcomes"]["entries"][1]["error"] == "DependencyViolation: in use"

    def test_default_path(self, sample_result, tmp_path, monkeypatch):
        """Test the timestamped default file name."""
        monkeypatch.chdir(tmp_path)
        result_path = JSONReporter().report(sample_result)

        assert result_path.startswith("cloudsweep_")
        assert result_path.endswith(".json")
        assert (tmp_path / result_path).exists()

    def test_to_string(self, sample_result):
        """Test rendering without writing a file."""
        text = JSONReporter(indent=None).to_string(sample_result)
        assert "\n" not in text
        assert json.loads(text)["metadata"]["resource_types"][0] == "elb"


class TestCLIReporter:
    """Tests for CLIReporter class."""

    def test_report_candidates(self, sample_result, console):
        """Test the matching resources table."""
        CLIReporter(console).report_candidates(sample_result)
        output = console.export_text()

        assert "Matching Resources" in output
        assert "lb-1" in output
        assert "sg-222222" in output
        # Labels are printed literally, not as markup
        assert "[bold]ci-runner" in output
        assert "Failed pipelines" in output
        assert "opensearch-domain (eu-west-1)" in output

    def test_report_outcomes(self, sample_result, console):
        """Test the deletion results table and summary."""
        CLIReporter(console).report_outcomes(sample_result)
        output = console.export_text()

        assert "Deletion Results" in output
        assert "deleted" in output
        assert "failed" in output
        assert "DependencyViolation" in output
        assert "Total:    2" in output

    def test_no_matches(self, console):
        """Test output when nothing matched."""
        result = SweepRunResult(regions=["us-east-1"], resource_types=["elb"], pipelines=[])
        CLIReporter(console).report_candidates(result)

        assert "No matching resources found" in console.export_text()

    def test_truncate(self):
        """Test long text truncation."""
        assert CLIReporter._truncate("short", 10) == "short"
        assert CLIReporter._truncate("a" * 20, 10) == "aaaaaaa..."
