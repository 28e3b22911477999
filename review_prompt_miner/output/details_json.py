"""Details JSON output for OutputFormatter."""

import os
import json
import logging
from typing import Dict, List

from ..models import ReviewCommentDetail


def write_details_json(self, details: List[ReviewCommentDetail], output_path: str):
    """Write comment details and run metadata to a JSON file.

    Args:
        details: Comment details (already restricted to the top reviewers)
        output_path: Destination file; parent directories are created
    """
    output = {
        'metadata': self._build_details_metadata(len(details)),
        'comments': [detail.to_dict() for detail in details],
    }

    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(output, f, indent=2, ensure_ascii=False)
    logging.info(f"Wrote {len(details)} comment details to {output_path}")


def _build_details_metadata(self, total_comments: int) -> Dict:
    """Build the metadata block; time-window and PR-count runs store different fields."""
    metadata = self.metadata
    output_metadata = {
        'organization': metadata.org,
        'analyzedAt': metadata.analyzed_at,
        'totalReposAnalyzed': metadata.total_repos,
        'totalComments': total_comments,
    }

    if metadata.since:
        output_metadata['since'] = metadata.since
    if metadata.pr_count_per_repo is not None:
        output_metadata['prCountPerRepo'] = metadata.pr_count_per_repo
    if metadata.total_prs_analyzed is not None:
        output_metadata['totalPRsAnalyzed'] = metadata.total_prs_analyzed

    return output_metadata
