"""Pull request ranking by review comment volume."""

import os
import csv
import logging
from typing import Dict, List, Tuple

from ..models import PRRankingRow, ReviewCommentDetail


PR_RANKINGS_CSV_COLUMNS = [
    'rank',
    'repo',
    'pr_number',
    'pr_title',
    'pr_author',
    'total_comments',
    'reviewer_count',
    'state',
    'pr_url',
]


def derive_pr_rankings_csv_path(details_output_path: str) -> str:
    """Derive the rankings CSV path from the details JSON path.

    Examples:
        out/prompt-details.json -> out/prompt-details-pr-rankings.csv
        out/prompt-details      -> out/prompt-details-pr-rankings.csv
    """
    ext = '.json'
    if details_output_path.endswith(ext):
        return f"{details_output_path[:-len(ext)]}-pr-rankings.csv"
    return f"{details_output_path}-pr-rankings.csv"


def aggregate_pr_rankings(details: List[ReviewCommentDetail]) -> List[PRRankingRow]:
    """Group comments by pull request and rank pull requests by comment count.

    Args:
        details: Comment details

    Returns:
        One row per (repo, number) pair, ranked 1..K by total comments (descending)
    """
    pr_map: Dict[Tuple[str, int], Dict] = {}

    for detail in details:
        key = (detail.pr.repo, detail.pr.number)
        entry = pr_map.get(key)

        if entry:
            entry['comments'] += 1
            entry['reviewers'].add(detail.reviewer)
        else:
            pr_map[key] = {
                'pr': detail.pr,
                'comments': 1,
                'reviewers': {detail.reviewer},
            }

    ranked = sorted(pr_map.values(), key=lambda e: e['comments'], reverse=True)

    return [
        PRRankingRow(
            rank=index,
            repo=entry['pr'].repo,
            pr_number=entry['pr'].number,
            pr_title=entry['pr'].title,
            pr_author=entry['pr'].author,
            pr_url=entry['pr'].url,
            total_comments=entry['comments'],
            reviewer_count=len(entry['reviewers']),
            state=entry['pr'].state
        )
        for index, entry in enumerate(ranked, start=1)
    ]


def write_pr_rankings_csv(rankings: List[PRRankingRow], output_path: str):
    """Write pull request rankings as CSV.

    Fields containing a comma, quote or line break are quoted with inner
    quotes doubled.

    Args:
        rankings: Ranked rows
        output_path: Destination file; parent directories are created
    """
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f, lineterminator='\n', quoting=csv.QUOTE_MINIMAL)
        writer.writerow(PR_RANKINGS_CSV_COLUMNS)
        for row in rankings:
            writer.writerow([getattr(row, column) for column in PR_RANKINGS_CSV_COLUMNS])

    logging.info(f"Wrote {len(rankings)} PR rankings to {output_path}")
