"""Terminal, JSON and CSV output for mining results."""

from .formatter_base import OutputFormatter, OutputMetadata
from .pr_rankings import (
    PR_RANKINGS_CSV_COLUMNS,
    aggregate_pr_rankings,
    derive_pr_rankings_csv_path,
    write_pr_rankings_csv,
)

__all__ = [
    'OutputFormatter',
    'OutputMetadata',
    'PR_RANKINGS_CSV_COLUMNS',
    'aggregate_pr_rankings',
    'derive_pr_rankings_csv_path',
    'write_pr_rankings_csv',
]
