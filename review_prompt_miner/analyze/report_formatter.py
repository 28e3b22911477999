"""Markdown report wrapper for the analysis output."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ReportMetadata:
    input_file: str
    total_comments: int
    reviewers: List[str] = field(default_factory=list)
    analyzed_at: str = ''
    model: str = ''


def format_markdown_report(analysis: str, metadata: ReportMetadata) -> str:
    """Wrap the model's analysis in a report with a summary header."""
    generated_by = f"Claude ({metadata.model})" if metadata.model else "Claude"
    return f"""# Code Review Pattern Analysis

**Generated:** {metadata.analyzed_at}
**Source:** {metadata.input_file}
**Total Comments:** {metadata.total_comments}
**Reviewers:** {', '.join(metadata.reviewers)}

---

{analysis}

---

*This analysis was generated using {generated_by} by analyzing code review patterns.*
"""
