"""Output formatting for top reviewer results."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class OutputMetadata:
    """Run information shown in the table header and stored in the details JSON."""
    org: str
    analyzed_at: str
    total_repos: int
    total_contributors: int = 0
    since: Optional[str] = None  # time-window runs
    pr_count_per_repo: Optional[int] = None  # PR-count runs
    total_prs_analyzed: Optional[int] = None  # PR-count runs


class OutputFormatter:
    """Prints and persists the results of a mining run."""

    # Aligns with the longest header label ("Organization:")
    LABEL_WIDTH = 15

    def __init__(self, metadata: OutputMetadata):
        """Initialize the output formatter.

        Args:
            metadata: Information about the run being reported
        """
        self.metadata = metadata


# Import and attach methods from submodules
from .console import print_table, _print_header, _format_activity_row
from .details_json import write_details_json, _build_details_metadata

OutputFormatter.print_table = print_table
OutputFormatter._print_header = _print_header
OutputFormatter._format_activity_row = _format_activity_row
OutputFormatter.write_details_json = write_details_json
OutputFormatter._build_details_metadata = _build_details_metadata
